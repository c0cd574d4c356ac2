"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, imgroute.toml only contains
overrides. An empty (or absent) file is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class TableConfig(BaseModel):
    """[table] section."""

    model_config = {"frozen": True, "extra": "forbid"}

    path: Path = Path(".imgroute/config.db")
    page_size: int = Field(default=50, ge=1, le=1000)
    busy_timeout: float = Field(default=5.0, gt=0)
