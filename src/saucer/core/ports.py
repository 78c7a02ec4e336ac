"""Port markers used in templates and the handles generated ports build on."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, List, Tuple, TypeVar

from .router import Router

Msg = TypeVar("Msg")
T = TypeVar("T")

PORT_ATTRIBUTE = "__saucer_port__"


class Sub(Generic[Msg]):
    """Return-annotation marker for incoming ports (host to application)."""


def port(func: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a template function as a port.

    The generator reads the marker statically; at runtime it only tags the
    function so tooling can recognise it.
    """

    setattr(func, PORT_ATTRIBUTE, True)
    return func


class IncomingPort:
    """Sender handle for one incoming port.

    ``constructor`` is the transformed template function that turns the port
    arguments into an application message.
    """

    def __init__(self, router: Router, constructor: Callable[..., Any]) -> None:
        self._router = router
        self._constructor = constructor

    def _emit(self, *args: Any) -> None:
        self._router.send_to_app(self._constructor(*args))


class OutgoingPort(Generic[T]):
    """Subscribe/dispatch handle for one outgoing port.

    ``dispatch`` queues a value for the loop; the loop calls ``deliver`` to fan
    it out to the current subscribers.
    """

    def __init__(self, queue: asyncio.Queue) -> None:
        self._queue = queue
        self._subscribers: List[Callable[[T], None]] = []

    @classmethod
    def new(cls) -> Tuple[Any, asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue()
        return cls(queue), queue

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def dispatch(self, value: T) -> None:
        self._queue.put_nowait(value)

    def deliver(self, value: T) -> None:
        for callback in list(self._subscribers):
            callback(value)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


__all__ = ["IncomingPort", "OutgoingPort", "PORT_ATTRIBUTE", "Sub", "port"]
