from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Event Planner settings, read from the environment or a ``.env`` file.

    Only SECRET_KEY has no default; everything else targets the docker
    compose stack (PostgreSQL + Redis) out of the box.
    """

    # Persistent store; sqlite+aiosqlite:///./eventplanner.db also works
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/eventplanner"
    DATABASE_ECHO: bool = False

    # Token revocation list and event read cache
    REDIS_URL: str = "redis://redis:6379/0"
    EVENTS_CACHE_TTL: int = 300

    # Identity tokens
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    ALGORITHM: str = "HS256"

    # Per-client request limits on the auth endpoints
    RATE_LIMIT_ENABLED: bool = True

    # Comma-separated list of browser origins allowed by CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8000"

    # development | test | production
    ENVIRONMENT: str = "development"

    # Logging; LOG_FILE enables a rotating file sink
    LOG_LEVEL: Optional[str] = None
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated ALLOWED_ORIGINS string to list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.ENVIRONMENT == "development" else "INFO"

    @property
    def log_file(self) -> Optional[str]:
        if self.LOG_FILE:
            return self.LOG_FILE
        return "logs/eventplanner.log" if self.is_production else None


settings = Settings()
