from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings with type-safe configuration management."""

    # Database Configuration
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/eventconnect"

    # Identity provider (OIDC) token verification
    OIDC_SIGNING_KEY: str
    OIDC_ALGORITHM: str = "HS256"
    OIDC_ISSUER: Optional[str] = None
    OIDC_AUDIENCE: Optional[str] = None
    IDENTITY_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS Configuration
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5000,http://localhost:8081"

    # Environment
    ENVIRONMENT: str = "development"

    # Feed and chat limits
    FEED_PAGE_LIMIT: int = 20
    BROWSE_PAGE_LIMIT: int = 100
    CHAT_HISTORY_LIMIT: int = 1000
    CHAT_MESSAGE_MAX_LENGTH: int = 3000
    SKIP_RESET_THRESHOLD: int = 20

    # Rate limits (slowapi notation)
    EXTERNAL_EVENTS_RATE_LIMIT: str = "30/minute"
    CHAT_RATE_LIMIT: str = "60/minute"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated ALLOWED_ORIGINS string to list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


# Create a single instance to be imported throughout the app
settings = Settings()
