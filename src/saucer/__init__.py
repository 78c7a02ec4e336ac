"""saucer: build-time generation of message-passing application runtimes.

Applications import the runtime support names from here; the generator itself
lives in :mod:`saucer.build`.
"""

from .core import (
    CoreManager,
    IncomingPort,
    Observation,
    ObservationKind,
    Observer,
    OutgoingPort,
    Router,
    SendToManager,
    Sub,
    filter_observer,
    filter_with,
    logging_observer,
    no_op_observer,
    no_op_reconciler,
    port,
    redacted_repr,
    tee_observer,
)

__version__ = "0.3.0"

__all__ = [
    "CoreManager",
    "IncomingPort",
    "Observation",
    "ObservationKind",
    "Observer",
    "OutgoingPort",
    "Router",
    "SendToManager",
    "Sub",
    "filter_observer",
    "filter_with",
    "logging_observer",
    "no_op_observer",
    "no_op_reconciler",
    "port",
    "redacted_repr",
    "tee_observer",
]
