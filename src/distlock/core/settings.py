"""Lock settings loader."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from distlock.utils.env import get_int_env, get_str_env


class LockSettings(BaseModel):
    backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "lock:"
    # Also the execution deadline of protected work.
    default_lease_ms: int = Field(default=300_000, gt=0)
    max_workers: int = Field(default=16, ge=1)

    @classmethod
    def _validated(cls, data: Dict[str, Any]) -> "LockSettings":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid lock settings: {path} must contain a mapping")
        return cls._validated(data)

    @classmethod
    def from_env(cls) -> "LockSettings":
        overrides = {
            "backend": get_str_env("DISTLOCK_BACKEND"),
            "redis_url": get_str_env("REDIS_URL"),
            "key_prefix": get_str_env("DISTLOCK_KEY_PREFIX"),
            "default_lease_ms": get_int_env("DISTLOCK_DEFAULT_LEASE_MS"),
            "max_workers": get_int_env("DISTLOCK_MAX_WORKERS"),
        }
        data = {name: value for name, value in overrides.items() if value is not None}
        if "backend" in data:
            data["backend"] = data["backend"].lower()
        return cls._validated(data)
