from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BUNDLED_REGISTRY = Path(__file__).resolve().parent.parent / "registry" / "catalog.yaml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    PROJECT_NAME: str = "Catalog Pipeline"
    VERSION: str = "0.1.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None  # rotating file logs are written only when set

    # Pipeline
    REGISTRY_FILE: str = str(BUNDLED_REGISTRY)  # Path to registry YAML
    REPORT_WORKERS: Optional[int] = None  # thread pool size for run_reports (None = executor default)

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("REPORT_WORKERS")
    @classmethod
    def check_workers(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("REPORT_WORKERS must be at least 1")
        return v


settings = Settings()
