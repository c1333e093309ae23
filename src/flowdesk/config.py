# flowdesk/config.py
"""
Runtime settings, read from the environment (and a ``.env`` file if present).
"""
from __future__ import annotations
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Union
from pydantic import BaseModel, Field, field_validator

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "FLOWDESK_"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class Settings(BaseModel):
    """Everything the CLI needs to wire a store, an engine and an adapter."""
    storage: StorageBackend = StorageBackend.MEMORY
    data_dir: Path = Path(".flowdesk")
    storage_key: str = "flowdesk-data"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "flowdesk:"
    actor_id: str = "local-user"
    activity_log: bool = True
    log_level: str = Field(default="INFO")

    @field_validator("storage", mode="before")
    @classmethod
    def _lower_backend(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Union[str, Path]] = None,
) -> Settings:
    """
    Build ``Settings`` from ``FLOWDESK_*`` variables.

    Args:
        env: Mapping to read instead of ``os.environ`` (no .env loading then)
        dotenv_path: Explicit .env file; defaults to searching from the cwd
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ
    values = {
        name.lower(): env[ENV_PREFIX + name.upper()]
        for name in Settings.model_fields
        if ENV_PREFIX + name.upper() in env
    }
    return Settings.model_validate(values)
