from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.core.security import decode_identity_token
from eventconnect.db.models.user import User
from eventconnect.db.session import get_session
from eventconnect.services.user_service import UserService

# Bearer identity tokens from the OIDC provider; paste one into Swagger's "Authorize"
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, session: AsyncSession) -> User:
    try:
        payload = decode_identity_token(token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # First authenticated request creates the row; later ones refresh it
    return await UserService(session).sync_from_claims(payload)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> User:
    """
    Get current user from the bearer identity token.

    Args:
        credentials: HTTP Bearer credentials containing the identity token
        session: Database session (injected)

    Returns:
        User object

    Raises:
        HTTPException: If the token is invalid or expired
    """
    return await _user_from_token(credentials.credentials, session)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    session: AsyncSession = Depends(get_session)
) -> Optional[User]:
    """Like get_current_user, but anonymous requests pass through as None."""
    if credentials is None:
        return None
    return await _user_from_token(credentials.credentials, session)
