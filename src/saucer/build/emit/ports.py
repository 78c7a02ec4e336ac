"""Render ``ports.py``: one handle class per port plus the Ports bundle."""

from __future__ import annotations

from typing import Dict

from ..errors import EmissionError
from ..models import IncomingPort, RuntimeSpecification, TemplateDescriptor
from ..ports import payload_type, to_camel
from .common import render


def template_alias(template: TemplateDescriptor) -> str:
    return "_" + template.key.replace(".", "_")


def receiver_key(name: str) -> str:
    """Selector key for an outgoing port's receive queue."""
    return f"port:{name}"


def _check_unique(spec: RuntimeSpecification) -> None:
    owners: Dict[str, TemplateDescriptor] = {}
    for template, port in spec.port_owners():
        if port.name in owners:
            raise EmissionError(
                f"port `{port.name}` is declared by both {owners[port.name].key} and {template.key}",
                path=template.path,
            )
        owners[port.name] = template


def render_ports_module(spec: RuntimeSpecification) -> str:
    _check_unique(spec)
    owners = spec.port_owners()
    templates = []
    for template, port in owners:
        if isinstance(port, IncomingPort) and template not in templates:
            templates.append(template)

    lines = [
        "from __future__ import annotations",
        "",
        "import asyncio",
        "from dataclasses import dataclass",
        "from typing import Callable, Tuple",
        "",
        "from saucer.core import IncomingPort, OutgoingPort, Router",
        "",
    ]
    for template in templates:
        package = ".".join((template.package_module, *template.module_path[:-1]))
        lines.append(f"from .{package} import {template.module_name} as {template_alias(template)}")
    lines.append("")

    for template, port in owners:
        camel = to_camel(port.name)
        params = "".join(f", {name}: {kind}" for name, kind in port.args)
        names = ", ".join(name for name, _ in port.args)
        if isinstance(port, IncomingPort):
            lines += [
                "",
                f"class {camel}PortIn(IncomingPort):",
                f'    """Sends ``{port.name}`` messages into the application."""',
                "",
                f"    def send(self{params}) -> None:",
                f"        self._emit({names})",
                "",
            ]
        else:
            value = payload_type(port.args)
            lines += [
                "",
                f"class {camel}PortOut(OutgoingPort):",
                f'    """Delivers ``{value}`` values from ``{port.name}`` to subscribers."""',
                "",
                f"    def subscribe(self, callback: Callable[[{value}], None]) -> Callable[[], None]:",
                "        return super().subscribe(callback)",
                "",
            ]

    lines += [
        "",
        "@dataclass(frozen=True)",
        "class Ports:",
        '    """Handles for every port declared by the root templates."""',
        "",
    ]
    for _, port in owners:
        suffix = "PortIn" if isinstance(port, IncomingPort) else "PortOut"
        lines.append(f"    {port.name}: {to_camel(port.name)}{suffix}")
    lines += [
        "",
        "    @classmethod",
        "    def new(cls, router: Router) -> Tuple[Ports, PortsReceivers]:",
    ]
    outgoing = [port for _, port in owners if not isinstance(port, IncomingPort)]
    for port in outgoing:
        lines.append(f"        {port.name}, {port.name}_rx = {to_camel(port.name)}PortOut.new()")
    lines.append("        ports = cls(")
    for template, port in owners:
        if isinstance(port, IncomingPort):
            constructor = f"{template_alias(template)}.{port.name}"
            lines.append(f"            {port.name}={to_camel(port.name)}PortIn(router, {constructor}),")
        else:
            lines.append(f"            {port.name}={port.name},")
    lines.append("        )")
    receivers = ", ".join(f"{port.name}={port.name}_rx" for port in outgoing)
    lines += [
        f"        return ports, PortsReceivers({receivers})",
        "",
        "",
        "@dataclass(frozen=True)",
        "class PortsReceivers:",
        '    """Queues the loop reads to deliver outgoing port values."""',
        "",
    ]
    if outgoing:
        lines += [f"    {port.name}: asyncio.Queue" for port in outgoing]
    else:
        lines.append("    pass")
    lines += ["", "", '__all__ = ["Ports", "PortsReceivers"]']
    return render(lines)


__all__ = ["receiver_key", "render_ports_module", "template_alias"]
