"""Fatal build-time failures raised by the generation pipeline."""

from __future__ import annotations

from pathlib import Path


class GenerationError(Exception):
    """Base class: generation stops at the first one of these."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(f"{path}: {message}" if path is not None else message)


class ConfigurationError(GenerationError):
    """Missing or invalid manifest metadata, packaging exclusions or breadcrumbs."""


class DiscoveryError(GenerationError):
    """Host file or template resolution failed, or ports sit on a non-root template."""


class HygieneError(GenerationError):
    """A template imports plumbing it must reach through generated helpers."""


class TransformError(GenerationError):
    """A template import matched no rewrite rule or rewriting produced bad source."""


class EmissionError(GenerationError):
    """A helper is missing or malformed, or emitted source does not parse."""


__all__ = [
    "ConfigurationError",
    "DiscoveryError",
    "EmissionError",
    "GenerationError",
    "HygieneError",
    "TransformError",
]
