from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from saucer.build.models import DEFAULT_NAMESPACE


class Settings(BaseSettings):
    """
    Build settings loaded from the environment and an optional .env file.
    Command-line flags override these.
    """
    model_config = SettingsConfigDict(
        env_prefix='SAUCER_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    manifest_dir: Path = Field(default_factory=Path.cwd)
    output_dir: Optional[Path] = None
    namespace: str = DEFAULT_NAMESPACE
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
