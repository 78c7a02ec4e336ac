"""Debug rendering that keeps callbacks and secrets out of logs."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any

REDACTED_FIELDS = frozenset({"returns", "tools"})
REDACTED = "<redacted>"


def _render_field(name: str, value: Any) -> str:
    if name in REDACTED_FIELDS or callable(value):
        return f"{name}={REDACTED}"
    return f"{name}={redacted_repr(value)}"


def redacted_repr(value: Any) -> str:
    """Return ``repr(value)`` with callback-bearing dataclass fields hidden.

    Dataclass instances are rendered field by field; fields named ``returns``
    or ``tools`` and any callable field print as ``<redacted>``. Everything
    else falls back to ``repr``.
    """

    if isinstance(value, Enum):
        return repr(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = [
            _render_field(item.name, getattr(value, item.name))
            for item in dataclasses.fields(value)
            if item.repr
        ]
        return f"{type(value).__name__}({', '.join(parts)})"
    if isinstance(value, (list, tuple)):
        rendered = ", ".join(redacted_repr(item) for item in value)
        if isinstance(value, tuple):
            return f"({rendered},)" if len(value) == 1 else f"({rendered})"
        return f"[{rendered}]"
    if callable(value):
        return REDACTED
    return repr(value)


__all__ = ["REDACTED", "REDACTED_FIELDS", "redacted_repr"]
