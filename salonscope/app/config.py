"""FastAPI application settings."""

from pydantic_settings import BaseSettings

from salonscope.etl.config import DEFAULT_DAYS_AHEAD, DEFAULT_LIMIT


class Settings(BaseSettings):
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    api_prefix: str = "/api/v1"
    default_days_ahead: int = DEFAULT_DAYS_AHEAD
    default_limit: int = DEFAULT_LIMIT

    class Config:
        env_file = ".env"


settings = Settings()
