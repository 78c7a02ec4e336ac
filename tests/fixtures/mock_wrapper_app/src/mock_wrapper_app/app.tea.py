from __future__ import annotations

from typing import Tuple

from mock_widget import widget
from saucer import Cmd
from saucer.command import shutdown

from .labels import DEFAULT_LABEL


def init() -> Tuple[str, Cmd[widget.Clicked]]:
    return DEFAULT_LABEL, shutdown()


def update(model: str, msg: widget.Clicked) -> Tuple[str, Cmd[widget.Clicked]]:
    return msg.label, Cmd.none()


def view(model: str) -> str:
    return widget.render(model)
