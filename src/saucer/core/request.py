"""Requests handled by the event loop itself rather than a manager."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable


class CoreRequest(Enum):
    """Requests addressed to the loop. Only shutdown exists today."""

    SHUTDOWN = "shutdown"

    def map(self, f: Callable[[Any], Any]) -> "CoreRequest":
        # Carries no message, so mapping is the identity.
        return self

    def __repr__(self) -> str:
        return f"CoreRequest.{self.name}"


def shutdown() -> CoreRequest:
    """Raw shutdown request; templates use the generated ``core.shutdown`` command."""
    return CoreRequest.SHUTDOWN


__all__ = ["CoreRequest", "shutdown"]
