from __future__ import annotations

import asyncio
import time
from typing import Any, Iterable, List

from saucer import Router

from .requests import TimeRequest, notify_after, now


class TimeManager:
    """Schedules timer callbacks on the running loop."""

    def init(self) -> List[asyncio.TimerHandle]:
        return []

    def on_effects(
        self,
        router: Router,
        state: List[asyncio.TimerHandle],
        effects: Iterable[TimeRequest[Any]],
    ) -> List[asyncio.TimerHandle]:
        loop = asyncio.get_running_loop()
        for request in effects:
            state.append(
                loop.call_later(request.delay, lambda r=request: router.send_to_app(r.returns(time.time())))
            )
        return state


__all__ = ["TimeManager", "TimeRequest", "notify_after", "now"]
