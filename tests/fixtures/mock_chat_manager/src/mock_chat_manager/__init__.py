from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from saucer import Router, SendToManager

from .requests import ChatRequest, say


@dataclass(frozen=True)
class ChatManagerMsg:
    text: str


@dataclass
class ChatState:
    listener: Optional[Callable[[str], Any]] = None


class ChatManager:
    """Echoes said text back in upper case through its own message queue."""

    def init(self) -> ChatState:
        return ChatState()

    def on_effects(self, router: Router, state: ChatState, effects: Iterable[ChatRequest[Any]]) -> ChatState:
        for request in effects:
            state.listener = request.returns
            router.send_to_self(ChatManagerMsg(request.text.upper()))
        return state

    def on_self_msg(self, state: ChatState, router: Router, msg: ChatManagerMsg) -> ChatState:
        if state.listener is not None:
            router.send_to_app(state.listener(msg.text))
        return state


def echo_reconciler() -> Callable[[Any, SendToManager[ChatManagerMsg]], None]:
    """Answers a "ping" view with a PONG message to the chat manager."""

    def reconcile(view: Any, sender: SendToManager[ChatManagerMsg]) -> None:
        if view == "ping":
            sender.send(ChatManagerMsg("PONG"))

    return reconcile


__all__ = ["ChatManager", "ChatManagerMsg", "ChatRequest", "echo_reconciler", "say"]
