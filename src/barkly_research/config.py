"""Project configuration loaded from pyproject.toml."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class ResearchConfig(BaseModel):
    """Configuration for the barkly-research project."""

    # Chunking parameters (word-based)
    chunk_min_words: int = Field(default=100, ge=1)
    chunk_max_words: int = Field(default=1500, ge=1)
    chunk_target_words: int = Field(default=750, ge=1)
    chunk_overlap_tokens: int = Field(default=50, ge=0)
    chunk_overlap_percentage: int = Field(default=10, ge=0, le=99)
    chunk_strategy: Literal["semantic", "structural", "hybrid", "sliding"] = "hybrid"

    # Jaccard keyword overlap above which chunks are linked as related
    related_threshold: float = Field(default=0.3, ge=0.0, le=1.0)


@lru_cache(maxsize=1)
def load_config() -> ResearchConfig:
    """Load configuration from pyproject.toml.

    Returns:
        ResearchConfig with settings from [tool.barkly-research] section,
        falling back to defaults if not found.
    """
    pyproject_path = _find_pyproject()
    if pyproject_path is None:
        return ResearchConfig()

    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)

    tool_config: dict[str, Any] = data.get("tool", {}).get("barkly-research", {})
    return ResearchConfig(**tool_config)


def _find_pyproject() -> Path | None:
    """Find pyproject.toml by walking up from current file."""
    current = Path(__file__).resolve().parent
    for _ in range(10):  # Max 10 levels up
        candidate = current / "pyproject.toml"
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent
    return None
