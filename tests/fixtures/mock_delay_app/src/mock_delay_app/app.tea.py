from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from mock_time_manager.command import later
from saucer import Cmd
from saucer.command import shutdown


@dataclass(frozen=True)
class Fired:
    now: float


def init() -> Tuple[int, Cmd[Fired]]:
    return 0, later(Fired)


def update(model: int, msg: Fired) -> Tuple[int, Cmd[Fired]]:
    return model + 1, shutdown()


def view(model: int) -> int:
    return model
