"""Channels connecting managers and reconcilers back to the event loop."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

M = TypeVar("M")


@dataclass
class RouterChannels:
    """Queues owned by one runtime: application events and manager self-messages."""

    app_queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    self_queue: Optional[asyncio.Queue] = None

    @classmethod
    def create(cls, *, with_self_messages: bool) -> "RouterChannels":
        return cls(self_queue=asyncio.Queue() if with_self_messages else None)

    def router(self, wrap_self: Callable[[Any], Any] | None = None) -> "Router":
        return Router(self.app_queue, self.self_queue, wrap_self)


class Router:
    """Handle given to managers and incoming ports for enqueueing messages.

    ``send_to_app`` queues an application event. ``send_to_self`` queues a
    self-message, wrapped in the owning manager's ``SelfMsg`` variant.
    """

    def __init__(
        self,
        app_queue: asyncio.Queue,
        self_queue: Optional[asyncio.Queue] = None,
        wrap_self: Callable[[Any], Any] | None = None,
    ) -> None:
        self._app_queue = app_queue
        self._self_queue = self_queue
        self._wrap_self = wrap_self

    def send_to_app(self, msg: Any) -> None:
        self._app_queue.put_nowait(msg)

    def send_to_self(self, msg: Any) -> None:
        if self._self_queue is None or self._wrap_self is None:
            raise RuntimeError("this manager did not declare a self-message type")
        self._self_queue.put_nowait(self._wrap_self(msg))

    def with_self(self, wrap_self: Callable[[Any], Any]) -> "Router":
        return Router(self._app_queue, self._self_queue, wrap_self)


class SendToManager(Generic[M]):
    """Restricted sender handed to the reconciler.

    Messages can only reach the one manager the mapper targets.
    """

    def __init__(self, self_queue: Optional[asyncio.Queue], mapper: Callable[[M], Any]) -> None:
        self._self_queue = self_queue
        self._mapper = mapper

    @classmethod
    def discard(cls) -> "SendToManager[Any]":
        """Sender for reconcilers whose manager takes no self-messages."""
        return cls(None, lambda msg: msg)

    def send(self, msg: M) -> None:
        if self._self_queue is None:
            logger.debug("Dropping reconciler message %r: manager has no self-message queue", msg)
            return
        self._self_queue.put_nowait(self._mapper(msg))


__all__ = ["Router", "RouterChannels", "SendToManager"]
