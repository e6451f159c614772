"""
Configuration settings for the Firestore sink.

Uses Pydantic Settings to load the connection, write and logging options from
environment variables (or a `.env` file). Values are deliberately loose here;
range and naming rules are checked by `firestore_sink.validation` so every
problem is reported at once instead of failing on the first bad field.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

AUTO_DETECT = "auto-detect"
DEFAULT_DATABASE = "(default)"
SERVICE_ACCOUNT_FILE_PATH = "filePath"
SERVICE_ACCOUNT_JSON = "JSON"


class Settings(BaseSettings):
    # Connection
    project: Optional[str] = Field(None, alias="FIRESTORE_PROJECT")
    database_name: str = Field(DEFAULT_DATABASE, alias="FIRESTORE_DATABASE")
    service_account_type: str = Field(SERVICE_ACCOUNT_FILE_PATH, alias="SERVICE_ACCOUNT_TYPE")
    service_account_file_path: Optional[str] = Field(AUTO_DETECT, alias="SERVICE_ACCOUNT_FILE_PATH")
    service_account_json: Optional[str] = Field(None, alias="SERVICE_ACCOUNT_JSON")

    # Write behaviour
    collection: str = Field("records", alias="FIRESTORE_COLLECTION")
    id_type: str = Field("Auto-generated id", alias="FIRESTORE_ID_TYPE")
    id_alias: Optional[str] = Field(None, alias="FIRESTORE_ID_ALIAS")
    batch_size: int = Field(25, alias="FIRESTORE_BATCH_SIZE")
    commit_max_attempts: int = Field(1, alias="FIRESTORE_COMMIT_MAX_ATTEMPTS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    @property
    def uses_service_account_json(self) -> bool:
        return self.service_account_type == SERVICE_ACCOUNT_JSON

    @property
    def key_file_path(self) -> Optional[str]:
        """Service account key path, or None when credentials are auto-detected."""
        path = self.service_account_file_path
        if not path or path == AUTO_DETECT:
            return None
        return path

    @property
    def resolved_database(self) -> str:
        return self.database_name or DEFAULT_DATABASE


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "Settings",
    "get_settings",
    "AUTO_DETECT",
    "DEFAULT_DATABASE",
    "SERVICE_ACCOUNT_FILE_PATH",
    "SERVICE_ACCOUNT_JSON",
]
