"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the order lifecycle service."""

    app_name: str = getenv("APP_NAME", "order_lifecycle API")
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./order_lifecycle.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    transition_max_retries: int = int(getenv("TRANSITION_MAX_RETRIES", "3"))
    transition_retry_backoff_seconds: float = float(getenv("TRANSITION_RETRY_BACKOFF_SECONDS", "0.05"))
    cancellation_placeholder_reason: str = getenv("CANCELLATION_PLACEHOLDER_REASON", "No reason given")


settings: Settings = Settings()
