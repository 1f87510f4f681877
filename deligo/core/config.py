"""Application configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Deligo Orders API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    log_level: str = getenv("LOG_LEVEL", "INFO")
    database_url: str = getenv("DATABASE_URL", "sqlite:///./deligo.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    jwt_issuer: str = getenv("JWT_ISSUER", "deligo-orders")
    admin_user: str = getenv("ADMIN_USER", "")
    admin_pass: str = getenv("ADMIN_PASS", "")
    default_delivery_fee: Decimal = Decimal(getenv("DEFAULT_DELIVERY_FEE", "5.00"))
    push_endpoint_url: str = getenv("PUSH_ENDPOINT_URL", "")
    push_server_key: str = getenv("PUSH_SERVER_KEY", "")
    push_timeout_seconds: float = float(getenv("PUSH_TIMEOUT_SECONDS", "5"))


settings: Settings = Settings()
