"""Assemble the generated ``runtime`` package from a RuntimeSpecification."""

from __future__ import annotations

import ast
import logging
from typing import Dict, List, Set

from ..errors import EmissionError
from ..managers import CORE_PACKAGE
from ..models import OutgoingPort, RuntimeSpecification, TemplateDescriptor
from ..symbols import REQUEST_MODULE
from .common import HEADER, render
from .helpers import render_helper_module
from .ports import render_ports_module
from .request import render_core_module, render_request_module
from .runtime import render_runtime_module

logger = logging.getLogger(__name__)


def _insert_prelude(template: TemplateDescriptor, code: str) -> str:
    """Import the generated outgoing-port helpers that replace the deleted stubs."""
    outgoing = [port.name for port in template.ports if isinstance(port, OutgoingPort)]
    if not outgoing:
        return code
    tree = ast.parse(code)
    index = 0
    body = tree.body
    if body and isinstance(body[0], ast.Expr) and isinstance(getattr(body[0], "value", None), ast.Constant):
        index = 1
    while index < len(body) and isinstance(body[index], ast.ImportFrom) and body[index].module == "__future__":
        index += 1
    prelude = ast.ImportFrom(
        module=REQUEST_MODULE,
        names=[ast.alias(name=name) for name in outgoing],
        level=template.depth,
    )
    body.insert(index, prelude)
    ast.fix_missing_locations(tree)
    return ast.unparse(tree) + "\n"


def _package_init(spec: RuntimeSpecification) -> str:
    request_names = ["Cmd", "Msg", "Request", "SelfMsg"]
    if spec.has_outgoing_ports:
        request_names.append("PortsRequest")
    exported = [*request_names, "Runtime"]
    lines = [
        f"from .request import {', '.join(request_names)}",
        "from .sync import Runtime",
    ]
    if spec.ports:
        lines.append("from .ports import Ports, PortsReceivers")
        exported += ["Ports", "PortsReceivers"]
    lines += ["", f"__all__ = {sorted(exported)!r}"]
    return render(lines)


def emit_runtime(spec: RuntimeSpecification) -> Dict[str, str]:
    """Render every generated file, keyed by path relative to the package root."""

    files: Dict[str, str] = {
        "__init__.py": _package_init(spec),
        "request.py": render_request_module(spec),
        "sync.py": render_runtime_module(spec),
    }

    core_helpers = spec.helpers_for(CORE_PACKAGE)
    if core_helpers:
        files["core.py"] = render_core_module(core_helpers)

    template_packages: Set[str] = {template.package_module for template in spec.templates}
    for manager in spec.effect_managers:
        helpers = spec.helpers_for(manager.module_name)
        if not helpers:
            continue
        if manager.module_name in template_packages:
            files[f"{manager.module_name}/__init__.py"] = render_helper_module(manager, helpers, level=2)
        else:
            files[f"{manager.module_name}.py"] = render_helper_module(manager, helpers)

    known = {manager.module_name for manager in spec.managers}
    for owner, helper in spec.used_helpers:
        if owner not in known:
            raise EmissionError(f"helper `{helper}` refers to unknown manager {owner!r}")

    if spec.ports:
        files["ports.py"] = render_ports_module(spec)

    for template in spec.templates:
        parts: List[str] = [template.package_module, *template.module_path[:-1]]
        for depth in range(1, len(parts) + 1):
            init = "/".join(parts[:depth]) + "/__init__.py"
            files.setdefault(init, HEADER + "\n")
        code = spec.transformed_templates.get(template.key)
        if code is None:
            raise EmissionError(f"template {template.key} was never transformed", path=template.path)
        files[template.output_path] = render([_insert_prelude(template, code)])

    logger.info("Emitted %d generated file(s)", len(files))
    return {name: files[name] for name in sorted(files)}


__all__ = ["emit_runtime"]
