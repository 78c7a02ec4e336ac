"""The built-in manager behind the ``Core`` request variant."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from .router import Router, SendToManager

Reconciler = Callable[[Any, SendToManager[Any]], None]


class CoreManager:
    """Placeholder manager: the loop itself handles core requests (shutdown)."""

    def init(self) -> None:
        return None

    def on_effects(self, router: Router, state: Any, effects: Iterable[Any]) -> Any:
        return state


def no_op_reconciler() -> Reconciler:
    """Reconciler that ignores every view."""

    def reconcile(view: Any, sender: SendToManager[Any]) -> None:
        return None

    return reconcile


__all__ = ["CoreManager", "Reconciler", "no_op_reconciler"]
