from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.db.session import get_session
from typing import Dict

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=Dict[str, str])
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    Health check endpoint.

    Returns:
        Dict with status indicating the service and its database are reachable
    """
    await session.execute(text("SELECT 1"))
    return {"status": "healthy"}
