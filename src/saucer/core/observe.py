"""Observations emitted by the runtime loop and the observers that consume them."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .debug import redacted_repr


class ObservationKind(str, Enum):
    EVENT = "event"
    EFFECT = "effect"
    MANAGER_MSG = "manager_msg"


@dataclass(frozen=True)
class Observation:
    """One thing the loop did: handled an event, a request or a self-message."""

    kind: ObservationKind
    data: Any
    manager: Optional[str] = None
    ts: float = field(default_factory=time.time, compare=False)

    @classmethod
    def event(cls, data: Any) -> "Observation":
        return cls(ObservationKind.EVENT, data)

    @classmethod
    def effect(cls, data: Any) -> "Observation":
        return cls(ObservationKind.EFFECT, data)

    @classmethod
    def manager_msg(cls, manager: str, data: Any) -> "Observation":
        return cls(ObservationKind.MANAGER_MSG, data, manager=manager)


Observer = Callable[[Observation], None]

_LOGGERS = {
    ObservationKind.EVENT: logging.getLogger("saucer.core.Msg"),
    ObservationKind.EFFECT: logging.getLogger("saucer.core.Cmd"),
    ObservationKind.MANAGER_MSG: logging.getLogger("saucer.core.SelfMsg"),
}


def _log_observation(observation: Observation, level: int) -> None:
    target = _LOGGERS[observation.kind]
    if not target.isEnabledFor(level):
        return
    if observation.manager is None:
        target.log(level, "%s", redacted_repr(observation.data))
    else:
        target.log(level, "%s: %s", observation.manager, redacted_repr(observation.data))


def no_op_observer() -> Observer:
    def observe(observation: Observation) -> None:
        return None

    return observe


def logging_observer(level: int = logging.DEBUG) -> Observer:
    """Log every observation on ``saucer.core.Msg`` / ``Cmd`` / ``SelfMsg``."""

    def observe(observation: Observation) -> None:
        _log_observation(observation, level)

    return observe


def filter_with(predicate: Callable[[Observation], bool], observer: Observer) -> Observer:
    def observe(observation: Observation) -> None:
        if predicate(observation):
            observer(observation)

    return observe


def filter_observer(predicate: Callable[[Observation], bool], level: int = logging.DEBUG) -> Observer:
    """Logging observer restricted to observations accepted by ``predicate``."""
    return filter_with(predicate, logging_observer(level))


def tee_observer(*observers: Observer) -> Observer:
    def observe(observation: Observation) -> None:
        for observer in observers:
            observer(observation)

    return observe


__all__ = [
    "Observation",
    "ObservationKind",
    "Observer",
    "filter_observer",
    "filter_with",
    "logging_observer",
    "no_op_observer",
    "tee_observer",
]
