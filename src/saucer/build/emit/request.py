"""Render ``request.py`` (Request, PortsRequest, SelfMsg, Cmd) and ``core.py``."""

from __future__ import annotations

from typing import List

from ..errors import EmissionError
from ..managers import CORE_PACKAGE
from ..models import RuntimeSpecification
from ..ports import payload_type, payload_value, to_camel
from .common import import_list, ports_request_class, qualified, render, request_class, self_msg_class

# Helpers available through ``from saucer.command import ...``.
CORE_HELPERS = {"shutdown": "core_shutdown()"}


def _ports_request(spec: RuntimeSpecification) -> List[str]:
    lines = [
        "class PortsRequest:",
        '    """Values headed for outgoing ports, one variant per port."""',
        "",
        "    __slots__ = ()",
        "",
    ]
    for port in spec.outgoing_ports:
        camel = to_camel(port.name)
        cls = ports_request_class(camel)
        lines += [
            "",
            "@dataclass(frozen=True, repr=False)",
            f"class {cls}(PortsRequest):",
            f"    value: {payload_type(port.args)}",
            "",
            "    def __repr__(self) -> str:",
            f'        return "PortsRequest.{camel}(..)"',
            "",
            "",
            f"PortsRequest.{camel} = {cls}",
            "",
        ]
    return lines


def _request(spec: RuntimeSpecification) -> List[str]:
    variants = [manager.variant for manager in spec.managers]
    if spec.has_outgoing_ports:
        variants.append("Ports")
    lines = [
        "",
        "class Request(Generic[Msg]):",
        '    """Every request the loop can dispatch, one variant per manager."""',
        "",
        "    __slots__ = ()",
        f"    VARIANTS = {tuple(variants)!r}",
        "",
        "    def map(self, f: Callable[[Msg], Msg2]) -> Request[Msg2]:",
        "        raise NotImplementedError",
        "",
    ]
    for manager in spec.managers:
        cls = request_class(manager)
        if manager.module_name == CORE_PACKAGE:
            value_type = "CoreRequest"
            mapped = f"{cls}(self.value)"
            shown = f'f"Request.{manager.variant}({{self.value!r}})"'
        else:
            value_type = f"{qualified(manager.module_name, manager.request_type)}[Msg]"
            mapped = f"{cls}(self.value.map(f))"
            shown = f'f"Request.{manager.variant}({{redacted_repr(self.value)}})"'
        lines += _variant(cls, value_type, mapped, shown, manager.variant)
    if spec.has_outgoing_ports:
        lines += _variant("RequestPorts", "PortsRequest", "RequestPorts(self.value)", 'f"Request.Ports({self.value!r})"', "Ports")
    return lines


def _variant(cls: str, value_type: str, mapped: str, shown: str, variant: str) -> List[str]:
    return [
        "",
        "@dataclass(frozen=True, repr=False)",
        f"class {cls}(Request[Msg]):",
        f"    value: {value_type}",
        "",
        "    def map(self, f: Callable[[Msg], Msg2]) -> Request[Msg2]:",
        f"        return {mapped}",
        "",
        "    def __repr__(self) -> str:",
        f"        return {shown}",
        "",
        "",
        f"Request.{variant} = {cls}",
        "",
    ]


def _self_msg(spec: RuntimeSpecification) -> List[str]:
    owners = spec.self_msg_managers
    if not owners:
        return ["", "SelfMsg = NoneType", ""]
    lines = [
        "",
        "class SelfMsg:",
        '    """Messages managers send to themselves through the loop."""',
        "",
        "    __slots__ = ()",
        "",
    ]
    for manager in owners:
        cls = self_msg_class(manager)
        lines += [
            "",
            "@dataclass(frozen=True)",
            f"class {cls}(SelfMsg):",
            f"    value: {qualified(manager.module_name, manager.self_msg_type)}",
            "",
            "",
            f"SelfMsg.{manager.variant} = {cls}",
            "",
        ]
    return lines


def _cmd() -> List[str]:
    return [
        "",
        "class Cmd(CoreCmd[Request[Any]]):",
        '    """Requests returned from ``init`` and ``update``."""',
        "",
        "    def map(self, f: Callable[[Any], Any]) -> Cmd:",
        "        return Cmd([request.map(f) for request in self.into_inner()])",
        "",
    ]


def _outgoing_helpers(spec: RuntimeSpecification) -> List[str]:
    lines: List[str] = []
    for port in spec.outgoing_ports:
        params = ", ".join(f"{name}: {kind}" for name, kind in port.args)
        cls = ports_request_class(to_camel(port.name))
        lines += [
            "",
            f"def {port.name}({params}) -> Cmd:",
            f"    return Cmd.single(RequestPorts({cls}({payload_value(port.args)})))",
            "",
        ]
    return lines


def render_request_module(spec: RuntimeSpecification) -> str:
    lines = [
        "from __future__ import annotations",
        "",
        "from dataclasses import dataclass",
    ]
    if not spec.self_msg_managers:
        lines.append("from types import NoneType")
    lines.append("from typing import Any, Callable, Generic, TypeVar")
    lines.append("")
    modules = sorted(
        {manager.module_name for manager in spec.managers if manager.module_name != CORE_PACKAGE}
    )
    lines += [f"import {module}" for module in modules]
    lines += import_list("saucer.core", ["CoreCmd", "CoreRequest", "redacted_repr"])
    lines += ["", 'Msg = TypeVar("Msg")', 'Msg2 = TypeVar("Msg2")', ""]
    if spec.has_outgoing_ports:
        lines += [""] + _ports_request(spec)
    lines += _request(spec)
    lines += _self_msg(spec)
    lines += _cmd()
    lines += _outgoing_helpers(spec)
    return render(lines)


def render_core_module(helpers: List[str]) -> str:
    """``core.py``: forwarding functions for the loop's own requests."""
    unknown = [name for name in helpers if name not in CORE_HELPERS]
    if unknown:
        raise EmissionError(
            f"saucer.command has no helper named {unknown[0]!r} (available: {', '.join(sorted(CORE_HELPERS))})"
        )
    lines = [
        "from __future__ import annotations",
        "",
        *[f"from saucer.core import {name} as core_{name}" for name in helpers],
        "",
        "from .request import Cmd, RequestCore",
        "",
    ]
    for name in helpers:
        lines += [
            "",
            f"def {name}() -> Cmd:",
            f"    return Cmd.single(RequestCore({CORE_HELPERS[name]}))",
            "",
        ]
    lines += ["", f"__all__ = {sorted(helpers)!r}"]
    return render(lines)


__all__ = ["CORE_HELPERS", "render_core_module", "render_request_module"]
