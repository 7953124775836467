"""User provisioning from identity claims and profile maintenance."""
from typing import Dict
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from eventconnect.core.security import profile_from_claims
from eventconnect.db.models.user import User
from eventconnect.db.repositories import (
    get_user as db_get_user,
    upsert_user as db_upsert_user,
    update_profile as db_update_profile,
)
from eventconnect.schemas import ProfileUpdate


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def sync_from_claims(self, claims: Dict) -> User:
        """
        Create or refresh the user a verified identity token describes.

        Known users whose stored columns already match the claims are
        returned without a write.

        Args:
            claims: Decoded token payload

        Returns:
            The stored User
        """
        profile = profile_from_claims(claims)
        user = await db_get_user(self.session, profile["id"])
        # Unchanged claims need no write
        if user and all(getattr(user, k) == v for k, v in profile.items() if v is not None):
            return user
        return await db_upsert_user(self.session, profile)

    async def update_profile(self, user_id: str, payload: ProfileUpdate) -> User:
        user = await db_update_profile(self.session, user_id, payload.model_dump(exclude_unset=True))
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user
