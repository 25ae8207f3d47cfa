from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Warehouse Inventory Server"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./warehouse.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_EXPIRE_MINUTES: int = 60 * 24
    PASSWORD_PBKDF2_ROUNDS: int = 200_000

    # ==============================
    # Inventory
    # ==============================
    ENFORCE_PURCHASE_PRICE: bool = False
    PURCHASE_NUMBER_PREFIX: str = "PUR"
    SALE_NUMBER_PREFIX: str = "SAL"
    ITEM_CODE_PREFIX: str = "BRG"
    DOCUMENT_NUMBER_WIDTH: int = 3
    STOCK_ADJUST_MAX_ATTEMPTS: int = 3

    # ==============================
    # Pagination
    # ==============================
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
