"""Build-time generation of the ``runtime`` package."""

from .coordinator import generate_runtime, is_up_to_date, run_generation, write_runtime
from .errors import (
    ConfigurationError,
    DiscoveryError,
    EmissionError,
    GenerationError,
    HygieneError,
    TransformError,
)
from .models import GenerationRequest, GenerationResult, RuntimeSpecification

__all__ = [
    "ConfigurationError",
    "DiscoveryError",
    "EmissionError",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "HygieneError",
    "RuntimeSpecification",
    "TransformError",
    "generate_runtime",
    "is_up_to_date",
    "run_generation",
    "write_runtime",
]
