"""Application configuration module."""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INSTRUMENTS: List[str] = ["kick", "snare", "hihat", "clap", "crash", "open", "rim", "bell"]
DEFAULT_BASE_URL = "https://casa24records.github.io/Drum-Machine-PRO"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Scanner and catalog settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    samples_dir: Path = Field(default=Path("samples"), alias="SOUNDKITS_SAMPLES_DIR")
    output_path: Path = Field(default=Path("manifest.json"), alias="SOUNDKITS_OUTPUT_PATH")
    instruments: List[str] = Field(default_factory=lambda: list(DEFAULT_INSTRUMENTS), alias="SOUNDKITS_INSTRUMENTS")
    file_extension: str = Field(default=".wav", alias="SOUNDKITS_FILE_EXTENSION")
    base_url: Optional[str] = Field(default=DEFAULT_BASE_URL, alias="GITHUB_PAGES_URL")
    samples_path: str = Field(default="samples", alias="SOUNDKITS_SAMPLES_PATH")
    manifest_version: str = Field(default="1.0.0", alias="SOUNDKITS_MANIFEST_VERSION")

    scan_workers: int = Field(default=4, ge=1, alias="SOUNDKITS_SCAN_WORKERS")
    slug_collision_policy: Literal["suffix", "fail"] = Field(
        default="suffix", alias="SOUNDKITS_SLUG_COLLISION_POLICY"
    )

    logging_json: bool = Field(default=False, alias="LOGGING_JSON")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("instruments")
    @classmethod
    def _check_vocabulary(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("instrument vocabulary must not be empty")
        if len(set(value)) != len(value):
            raise ValueError("instrument vocabulary contains duplicates")
        for tag in value:
            if tag != tag.strip().lower() or not tag:
                raise ValueError(f"instrument tag must be lowercase and trimmed: {tag!r}")
        return value

    @field_validator("file_extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"file extension must look like '.wav', got {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @field_validator("base_url")
    @classmethod
    def _blank_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
