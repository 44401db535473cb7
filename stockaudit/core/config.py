# stockaudit/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./stock_audit.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 30
    DB_POOL_TIMEOUT: int = 60
    DB_POOL_RECYCLE: int = 3600

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and ("localhost" in v or v.startswith("sqlite")):
            raise ValueError("Production environment cannot use a local database!")
        return v

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === File Upload ===
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB
    ALLOWED_PLAN_EXTENSIONS: List[str] = [".xlsx", ".csv"]

    # === System ===
    APP_NAME: str = "Stock Audit Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # === Business Rules ===
    MAX_CODE_LENGTH: int = 50
    MAX_ENTRY_QUANTITY: int = 999999
    MAX_SECTORS_PER_WEEK: int = 10
    MAX_TOTAL_WEEKS: int = 52
    DEFAULT_CATEGORY_PRIORITY: int = 3
    DEFAULT_CATEGORY_COLOR: str = "#3B82F6"
    RECENT_TOTALS_LIMIT: int = 5

    # Leave unset outside tests/demos so every regeneration reshuffles work days
    SCHEDULE_SHUFFLE_SEED: Optional[int] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create a global settings instance
settings = Settings()
