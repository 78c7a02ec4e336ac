"""Render ``sync.py``: the asyncio event loop driving the application."""

from __future__ import annotations

from typing import List

from ..managers import CORE_PACKAGE
from ..models import ManagerDescriptor, RuntimeSpecification
from ..ports import to_camel
from .common import import_list, ports_request_class, render, request_class, self_msg_class
from .ports import receiver_key


def _manager_setup(manager: ManagerDescriptor) -> List[str]:
    ident = manager.ident
    if manager.module_name == CORE_PACKAGE:
        constructor = "CoreManager()"
    else:
        constructor = f"{manager.module_name}.{manager.manager_type}()"
    router = f"channels.router({self_msg_class(manager)})" if manager.has_self_msg else "channels.router()"
    return [
        f"        {ident}_manager = {constructor}",
        f"        {ident}_state = {ident}_manager.init()",
        f"        {ident}_router = {router}",
    ]


def _request_dispatch(spec: RuntimeSpecification) -> List[str]:
    lines: List[str] = []
    keyword = "if"
    for manager in spec.managers:
        ident = manager.ident
        lines.append(f"                    {keyword} isinstance(item, {request_class(manager)}):")
        if manager.module_name == CORE_PACKAGE:
            lines += [
                "                        if item.value is CoreRequest.SHUTDOWN:",
                "                            self._drain_port_queues(selector)",
                "                            break",
            ]
        lines.append(
            f"                        {ident}_state = {ident}_manager.on_effects({ident}_router, {ident}_state, [item.value])"
        )
        keyword = "elif"
    if spec.has_outgoing_ports:
        lines += [
            "                    elif isinstance(item, RequestPorts):",
            "                        self._dispatch_port(item.value)",
        ]
    lines += [
        "                    else:",
        '                        raise TypeError(f"unroutable request {item!r}")',
    ]
    return lines


def _self_dispatch(spec: RuntimeSpecification) -> List[str]:
    owners = spec.self_msg_managers
    if not owners:
        return []
    lines = ["                elif source == _SELF_MSGS:"]
    keyword = "if"
    for manager in owners:
        ident = manager.ident
        lines += [
            f"                    {keyword} isinstance(item, {self_msg_class(manager)}):",
            f'                        observer(Observation.manager_msg("{manager.module_name}", item.value))',
            f"                        {ident}_state = {ident}_manager.on_self_msg({ident}_state, {ident}_router, item.value)",
        ]
        keyword = "elif"
    return lines


def _sender(spec: RuntimeSpecification) -> str:
    target = spec.reconciler_manager
    if target.has_self_msg:
        return f"SendToManager(channels.self_queue, {self_msg_class(target)})"
    return "SendToManager.discard()"


def render_runtime_module(spec: RuntimeSpecification) -> str:
    has_ports = bool(spec.ports)
    outgoing = spec.outgoing_ports
    self_owners = spec.self_msg_managers

    request_names = ["Cmd", *[request_class(manager) for manager in spec.managers]]
    request_names += [self_msg_class(manager) for manager in self_owners]
    if spec.has_outgoing_ports:
        request_names += ["PortsRequest", "RequestPorts"]
        request_names += [ports_request_class(to_camel(port.name)) for port in outgoing]

    lines = [
        "from __future__ import annotations",
        "",
        "import asyncio",
        "from typing import Any, Callable, Optional, Tuple",
        "",
    ]
    lines += [f"import {manager.module_name}" for manager in spec.effect_managers]
    lines += import_list(
        "saucer.core",
        [
            "CoreManager",
            "CoreRequest",
            "Observation",
            "Observer",
            "QueueSelector",
            "RouterChannels",
            "SendToManager",
            "no_op_observer",
        ],
    )
    lines.append("")
    if has_ports:
        lines.append("from .ports import Ports")
    lines += import_list(".request", request_names)
    lines += [
        "",
        '_REQUESTS = "requests"',
        '_EVENTS = "events"',
    ]
    if self_owners:
        lines.append('_SELF_MSGS = "self_msgs"')
    lines += [
        "",
        "",
        "class Runtime:",
        '    """Runs ``init``/``update``/``view`` against the registered effect managers.',
        "",
        "    Each loop turn services exactly one queue: a request, an application",
        "    event, a manager self-message or an outgoing port value. A shutdown",
        "    request flushes pending port values and ends ``run``.",
        '    """',
        "",
        "    def __init__(",
        "        self,",
        "        init: Callable[[], Tuple[Any, Cmd]],",
        "        update: Callable[[Any, Any], Tuple[Any, Cmd]],",
        "        view: Callable[[Any], Any],",
        "        reconciler: Callable[[Any, SendToManager[Any]], None],",
        "        observer: Optional[Observer] = None,",
        "    ) -> None:",
        "        self._init = init",
        "        self._update = update",
        "        self._view = view",
        "        self._reconciler = reconciler",
        "        self._observer = observer or no_op_observer()",
        "        self._started = False",
        "        self._requests: asyncio.Queue = asyncio.Queue()",
        f"        self._channels = RouterChannels.create(with_self_messages={bool(self_owners)})",
    ]
    if has_ports:
        lines += [
            "        self._ports, self._receivers = Ports.new(self._channels.router())",
            "",
            "    def ports(self) -> Ports:",
            "        return self._ports",
        ]
    lines += [
        "",
        "    def _push(self, cmd: Cmd) -> None:",
        "        for request in cmd.into_inner():",
        "            self._requests.put_nowait(request)",
        "",
    ]
    if spec.has_outgoing_ports:
        lines += [
            "    def _dispatch_port(self, request: PortsRequest) -> None:",
        ]
        keyword = "if"
        for port in outgoing:
            lines += [
                f"        {keyword} isinstance(request, {ports_request_class(to_camel(port.name))}):",
                f"            self._ports.{port.name}.dispatch(request.value)",
            ]
            keyword = "elif"
        lines.append("")
    lines.append("    def _drain_port_queues(self, selector: QueueSelector) -> None:")
    if outgoing:
        for port in outgoing:
            lines += [
                f'        for value in selector.drain("{receiver_key(port.name)}"):',
                f"            self._ports.{port.name}.deliver(value)",
            ]
    else:
        lines.append("        return None")
    lines += [
        "",
        "    async def run(self) -> None:",
        "        if self._started:",
        '            raise RuntimeError("Runtime.run() may only be called once")',
        "        self._started = True",
        "        observer = self._observer",
        "        channels = self._channels",
        "",
    ]
    for manager in spec.managers:
        lines += _manager_setup(manager)
    lines += [
        f"        sender = {_sender(spec)}",
        "",
        "        model, cmd = self._init()",
        "        self._push(cmd)",
        "        self._reconciler(self._view(model), sender)",
        "",
        "        selector = QueueSelector(",
        "            {",
        "                _REQUESTS: self._requests,",
        "                _EVENTS: channels.app_queue,",
    ]
    if self_owners:
        lines.append("                _SELF_MSGS: channels.self_queue,")
    for port in outgoing:
        lines.append(f'                "{receiver_key(port.name)}": self._receivers.{port.name},')
    lines += [
        "            }",
        "        )",
        "        try:",
        "            while True:",
        "                source, item = await selector.next()",
        "                if source == _REQUESTS:",
        "                    observer(Observation.effect(item))",
    ]
    lines += _request_dispatch(spec)
    lines += [
        "                elif source == _EVENTS:",
        "                    observer(Observation.event(item))",
        "                    model, cmd = self._update(model, item)",
        "                    self._push(cmd)",
        "                    self._reconciler(self._view(model), sender)",
    ]
    lines += _self_dispatch(spec)
    for port in outgoing:
        lines += [
            f'                elif source == "{receiver_key(port.name)}":',
            f"                    self._ports.{port.name}.deliver(item)",
        ]
    lines += [
        "        finally:",
        "            selector.close()",
        "",
        "",
        '__all__ = ["Runtime"]',
    ]
    return render(lines)


__all__ = ["render_runtime_module"]
