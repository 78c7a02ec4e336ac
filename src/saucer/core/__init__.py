"""Runtime support library imported by generated ``runtime`` packages."""

from .cmd import CoreCmd
from .debug import REDACTED, redacted_repr
from .manager import CoreManager, Reconciler, no_op_reconciler
from .observe import (
    Observation,
    ObservationKind,
    Observer,
    filter_observer,
    filter_with,
    logging_observer,
    no_op_observer,
    tee_observer,
)
from .ports import IncomingPort, OutgoingPort, Sub, port
from .request import CoreRequest, shutdown
from .router import Router, RouterChannels, SendToManager
from .select import QueueSelector

__all__ = [
    "CoreCmd",
    "CoreManager",
    "CoreRequest",
    "IncomingPort",
    "Observation",
    "ObservationKind",
    "Observer",
    "OutgoingPort",
    "QueueSelector",
    "REDACTED",
    "Reconciler",
    "Router",
    "RouterChannels",
    "SendToManager",
    "Sub",
    "filter_observer",
    "filter_with",
    "logging_observer",
    "no_op_observer",
    "no_op_reconciler",
    "port",
    "redacted_repr",
    "shutdown",
    "tee_observer",
]
