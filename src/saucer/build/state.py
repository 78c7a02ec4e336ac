"""TypedDict definitions for generation pipeline phases."""

from __future__ import annotations

from typing import Literal

from typing_extensions import TypedDict


class GenerationPhase(TypedDict, total=False):
    """Structured metadata describing one pipeline phase."""

    name: str
    description: str
    status: Literal["pending", "in_progress", "complete", "failed"]
    started_at: float
    completed_at: float
    duration: float
    summary: str
    error: str


__all__ = ["GenerationPhase"]
