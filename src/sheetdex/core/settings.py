from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from sheetdex.core.constants import (
    DEFAULT_EXTENSIONS,
    DEFAULT_MAX_CONCURRENT_FILES,
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    STATS_CACHE_TTL_SECONDS,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHEETDEX_",
        case_sensitive=True,
        extra="ignore"
    )

    # --- CORE RELEVANT SETTINGS ---
    EXCEL_FOLDER_PATH: str = "./excel_files"
    DB_PATH: str = str(Path.home() / ".local" / "share" / "sheetdex" / "sheetdex.db")
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # --- INGESTION ---
    FORCE_REIMPORT: bool = False
    MAX_CONCURRENT_FILES: int = DEFAULT_MAX_CONCURRENT_FILES
    PRUNE_MISSING: bool = False
    EXTENSIONS: List[str] = list(DEFAULT_EXTENSIONS)

    # --- SEARCH & EXPORT ---
    SEARCH_DEFAULT_LIMIT: int = DEFAULT_SEARCH_LIMIT
    SEARCH_MAX_LIMIT: int = MAX_SEARCH_LIMIT
    STATS_CACHE_TTL_SEC: int = STATS_CACHE_TTL_SECONDS
    EXPORT_COLUMN_WIDTH: float = 15.0

    # --- STORAGE ---
    BUSY_TIMEOUT_MS: int = 15000

    @property
    def db_path(self) -> str:
        return str(Path(self.DB_PATH).expanduser())


settings = Settings()
