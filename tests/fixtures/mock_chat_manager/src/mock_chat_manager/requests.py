from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

Msg = TypeVar("Msg")
Msg2 = TypeVar("Msg2")


@dataclass(frozen=True)
class ChatRequest(Generic[Msg]):
    text: str
    returns: Callable[[str], Msg]

    def map(self, f: Callable[[Msg], Msg2]) -> ChatRequest[Msg2]:
        returns = self.returns
        return ChatRequest(self.text, lambda text: f(returns(text)))


def say(text: str, returns: Callable[[str], Msg]) -> ChatRequest[Msg]:
    return ChatRequest(text, returns)
