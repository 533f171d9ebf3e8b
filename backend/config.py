# backend/config.py
from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_pos.db"

    FRONTEND_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Cart defaults for a new POS session
    DEFAULT_TAX_RATE: Decimal = Decimal("0.11")
    TAX_ENABLED: bool = True
    DEFAULT_DELIVERY_FEE: Decimal = Decimal("0")

    # Shared secret used to sign payment gateway notifications
    PAYMENT_GATEWAY_SECRET: str = "dev-gateway-secret"
    # Minutes a gateway order may wait for payment before it is expired
    PAYMENT_EXPIRY_MINUTES: int = 10

    # Login throttling
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_SECONDS: int = 900
    RATE_LIMIT_MAX_ENTRIES: int = 10000
    RATE_LIMIT_SWEEP_SECONDS: int = 3600

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
