"""Command containers shared by every generated runtime."""

from __future__ import annotations

from typing import Any, Generic, Iterable, Iterator, List, TypeVar

Req = TypeVar("Req")


class CoreCmd(Generic[Req]):
    """Ordered batch of requests returned from ``init`` and ``update``.

    Generated runtimes subclass this as ``Cmd`` and add a ``map`` that lifts
    every request to a different message type.
    """

    __slots__ = ("_requests",)

    def __init__(self, requests: Iterable[Req] | None = None) -> None:
        self._requests: List[Req] = list(requests or ())

    @classmethod
    def none(cls) -> Any:
        return cls()

    @classmethod
    def single(cls, request: Req) -> Any:
        return cls([request])

    @classmethod
    def batch(cls, cmds: Iterable["CoreCmd[Req]"]) -> Any:
        requests: List[Req] = []
        for cmd in cmds:
            requests.extend(cmd.into_inner())
        return cls(requests)

    def into_inner(self) -> List[Req]:
        return list(self._requests)

    def is_empty(self) -> bool:
        return not self._requests

    def __iter__(self) -> Iterator[Req]:
        return iter(self._requests)

    def __len__(self) -> int:
        return len(self._requests)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoreCmd):
            return NotImplemented
        return self._requests == other._requests

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._requests!r})"


__all__ = ["CoreCmd"]
