from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Request, Query, status, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from eventconnect.api.routes import (
    health as health_router,
    events as events_router,
    rsvps as rsvps_router,
    chat as chat_router,
    notifications as notifications_router,
    external as external_router,
    users as users_router,
)
from eventconnect.db.session import engine, Base, AsyncSessionLocal
from eventconnect.realtime.manager import manager
from eventconnect.realtime.handlers import handle_frame
from eventconnect.services.user_service import UserService
from eventconnect.core.config import settings
from eventconnect.core.security import decode_identity_token
from eventconnect.core.logging import logger
from eventconnect.core.rate_limit import limiter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import eventconnect.db.models  # noqa: F401  registers tables on Base.metadata

app = FastAPI(title="EventConnect")

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.opt(exception=exc).error(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


api_router = APIRouter(prefix="/api")
api_router.include_router(health_router.router)
api_router.include_router(users_router.router)
api_router.include_router(events_router.router)
api_router.include_router(rsvps_router.router)
api_router.include_router(chat_router.router)
api_router.include_router(notifications_router.router)
api_router.include_router(external_router.router)

app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    # Alembic owns the schema in production; create_all covers local runs
    if settings.ENVIRONMENT != "production":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info(f"EventConnect started ({settings.ENVIRONMENT})")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: Optional[str] = Query(None)):
    """
    Realtime channel for event chat and notifications.

    Clients authenticate with their identity token as a query parameter.
    Example: ws://localhost:8000/ws?token=your_identity_token
    """
    if not token:
        logger.warning("WebSocket connection attempt without token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        payload = decode_identity_token(token)
    except ValueError as e:
        logger.warning(f"WebSocket connection rejected: {str(e)}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        async with AsyncSessionLocal() as session:
            user = await UserService(session).sync_from_claims(payload)
            user_id = user.id
    except SQLAlchemyError as e:
        logger.warning(f"WebSocket connection rejected, user sync failed: {str(e)}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket)
    logger.info(f"WebSocket connection established for user {user_id}")
    try:
        while True:
            raw = await websocket.receive_text()
            await handle_frame(websocket, raw, user_id)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user_id}")
    except Exception as e:
        logger.error(f"WebSocket error for user {user_id}: {str(e)}")
    finally:
        await manager.disconnect(websocket)
