import os
import tempfile
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    DB_ECHO: bool = False
    DB_BUSY_TIMEOUT_SECONDS: int = 30
    RESET_DB: bool = False
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    ADMIN_USER_IDS: List[str] = ["admin"]
    STOCK_LOCK_DIR: str = os.path.join(tempfile.gettempdir(), "shopcore_locks")
    STOCK_LOCK_TIMEOUT_SECONDS: float = 10
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
