import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from DOCKSTART_* environment variables or a .env file.

    disabled_detectors takes a JSON list, e.g.
    DOCKSTART_DISABLED_DETECTORS='["rust"]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCKSTART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Console renderer and DEBUG-level output for local use
    debug: bool = False

    log_level: str = "INFO"

    # Detector names ("node", "go", "python", "rust") to skip
    disabled_detectors: list[str] = []

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {v!r}")
        return level

    @field_validator("disabled_detectors")
    @classmethod
    def normalise_detector_names(cls, v: list[str]) -> list[str]:
        return [name.strip().lower() for name in v if name.strip()]


def get_settings() -> Settings:
    return Settings()
