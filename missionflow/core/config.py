"""Application settings, read from the environment and ``.env``.

Variables carry the ``MISSIONFLOW_`` prefix, e.g. ``MISSIONFLOW_DATABASE_URL``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from missionflow.common.logger import LOG_LEVELS


class Settings(BaseSettings):
    app_name: str = "RNP Mission Management"
    debug: bool = False

    # Comma-separated origins of the web client
    cors_origins: str = "http://localhost:5173"

    database_url: str = "sqlite:///./missionflow.db"

    log_level: str = "INFO"
    log_dir: str = "./logs"
    file_logging: bool = False

    # YAML file with per-mission-type approval chains
    workflow_config_path: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="MISSIONFLOW_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()
