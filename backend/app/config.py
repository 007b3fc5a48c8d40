"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./cheap_chats.db"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Group expiry (minutes are counted down by the scheduler)
    DEFAULT_EXPIRY_MINUTES: int = 60
    EXPIRY_SCHEDULER_ENABLED: bool = True
    EXPIRY_TICK_SECONDS: float = 60.0
    EXPIRY_SWEEP_SECONDS: float = 60.0

    class Config:
        env_file = ".env"


settings = Settings()
