"""Shared bits for rendering generated modules."""

from __future__ import annotations

from typing import Iterable, List

from ..models import ManagerDescriptor

HEADER = "# Generated runtime module - do not edit manually"


def render(lines: Iterable[str]) -> str:
    text = "\n".join(lines).rstrip() + "\n"
    return f"{HEADER}\n{text}"


def qualified(module: str, type_name: str) -> str:
    """Type reference usable from generated code: ``module.Type`` unless already dotted."""
    return type_name if "." in type_name else f"{module}.{type_name}"


def request_class(manager: ManagerDescriptor) -> str:
    return f"Request{manager.variant}"


def self_msg_class(manager: ManagerDescriptor) -> str:
    return f"SelfMsg{manager.variant}"


def ports_request_class(camel: str) -> str:
    return f"PortsRequest{camel}"


def import_list(module: str, names: Iterable[str]) -> List[str]:
    """``from module import a, b`` wrapped one name per line when long."""
    ordered = sorted(set(names))
    single = f"from {module} import {', '.join(ordered)}"
    if len(single) <= 88:
        return [single]
    return [f"from {module} import (", *[f"    {name}," for name in ordered], ")"]


__all__ = [
    "HEADER",
    "import_list",
    "ports_request_class",
    "qualified",
    "render",
    "request_class",
    "self_msg_class",
]
