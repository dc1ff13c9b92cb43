"""Run configuration for flatcopy."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator


def available_cpus() -> int:
    """CPUs this process may run on, falling back to the installed count."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


def default_concurrency() -> int:
    return available_cpus()


class FlattenSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    output_dir: str = Field(default="output", description="Destination directory, relative to the root")
    prefix: str = Field(default="", description="Prepended to every destination filename")
    max_concurrency: int = Field(default_factory=default_concurrency, ge=1)
    report_time: bool = Field(default=False)

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("output directory must not be empty")
        normalized = os.path.normpath(value)
        if normalized == os.curdir:
            raise ValueError("output directory must not be the traversal root")
        return normalized

    @field_validator("prefix")
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        if any(sep in value for sep in ("/", "\\", os.sep)):
            raise ValueError("prefix must not contain a path separator")
        if value and not value.endswith("_"):
            return f"{value}_"
        return value
