"""Fair multi-way wait over asyncio queues."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Dict, List, Tuple


class QueueSelector:
    """Wait on several named queues and hand back one item per call.

    Every queue keeps at most one pending ``get`` task, so an item taken off a
    queue is never lost between calls. When several queues are ready, the one
    after the most recently serviced queue (in registration order) wins.
    """

    def __init__(self, queues: Mapping[str, asyncio.Queue]) -> None:
        if not queues:
            raise ValueError("QueueSelector needs at least one queue")
        self._queues: Dict[str, asyncio.Queue] = dict(queues)
        self._order: List[str] = list(self._queues)
        self._getters: Dict[str, asyncio.Task] = {}
        self._cursor = 0

    def _arm(self) -> None:
        for name in self._order:
            if name not in self._getters:
                self._getters[name] = asyncio.ensure_future(self._queues[name].get())

    def _ready(self) -> List[str]:
        rotated = self._order[self._cursor:] + self._order[: self._cursor]
        return [name for name in rotated if self._getters[name].done()]

    async def next(self) -> Tuple[str, Any]:
        """Return ``(queue name, item)`` for exactly one ready queue."""
        self._arm()
        ready = self._ready()
        while not ready:
            await asyncio.wait(self._getters.values(), return_when=asyncio.FIRST_COMPLETED)
            ready = self._ready()
        name = ready[0]
        self._cursor = (self._order.index(name) + 1) % len(self._order)
        return name, self._getters.pop(name).result()

    def drain(self, name: str) -> List[Any]:
        """Take every item currently available on ``name`` without waiting."""
        items: List[Any] = []
        getter = self._getters.pop(name, None)
        if getter is not None:
            if getter.done() and not getter.cancelled():
                items.append(getter.result())
            else:
                getter.cancel()
        queue = self._queues[name]
        while True:
            try:
                items.append(queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        return items

    def close(self) -> None:
        for getter in self._getters.values():
            getter.cancel()
        self._getters.clear()


__all__ = ["QueueSelector"]
