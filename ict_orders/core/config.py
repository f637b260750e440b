"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "ICT Order Management API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    log_level: str = getenv("LOG_LEVEL", "INFO")
    database_url: str = getenv("DATABASE_URL", "sqlite:///./ict_orders.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_user: str = getenv("ADMIN_USER", "admin")
    admin_pass: str = getenv("ADMIN_PASS", "")
    enforce_status_transitions: bool = getenv("ENFORCE_STATUS_TRANSITIONS", "0") == "1"
    default_page_size: int = int(getenv("DEFAULT_PAGE_SIZE", "20"))
    max_page_size: int = int(getenv("MAX_PAGE_SIZE", "100"))


settings: Settings = Settings()
