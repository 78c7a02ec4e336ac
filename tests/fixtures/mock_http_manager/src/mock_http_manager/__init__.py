from __future__ import annotations

from typing import Any, Iterable, List

from saucer import Router

from .requests import HttpRequest, HttpResponse, get, post


class HttpManager:
    """Answers every request immediately with a canned response."""

    def init(self) -> List[str]:
        return []

    def on_effects(self, router: Router, state: List[str], effects: Iterable[HttpRequest[Any]]) -> List[str]:
        for request in effects:
            state.append(f"{request.method} {request.url}")
            router.send_to_app(request.returns(HttpResponse(200, f"{request.method} {request.url}")))
        return state


__all__ = ["HttpManager", "HttpRequest", "HttpResponse", "get", "post"]
