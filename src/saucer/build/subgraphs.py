"""LangGraph subgraphs for the discovery and emission phases."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from langgraph.graph import END, START, StateGraph

from .emit import emit_runtime
from .host import locate_host, resolve_reconciler
from .hygiene import check_packaging, check_template_imports, dependency_infos, describe_package
from .managers import discover_managers, effect_managers
from .manifest import read_manifest
from .models import OutgoingPort, RuntimeSpecification
from .symbols import SymbolTable
from .syntax import validate_generated_files
from .templates import TemplateContext, attach_ports, discover_templates, expand_templates
from .transform import transform_template

logger = logging.getLogger(__name__)

GenerationState = Dict[str, Any]


def _watch(state: GenerationState, *paths: Path) -> None:
    watched: List[Path] = state.setdefault("watched", [])
    for path in paths:
        if path not in watched:
            watched.append(path)


def _read_manifest_node(state: GenerationState) -> GenerationState:
    request = state["request"]
    state["manifest"] = read_manifest(request.manifest_path)
    return state


def _discover_managers_node(state: GenerationState) -> GenerationState:
    managers, watched = discover_managers(state["manifest"])
    state["managers"] = managers
    _watch(state, *watched)
    logger.info("Found %d effect manager(s)", len(effect_managers(managers)))
    return state


def _locate_host_node(state: GenerationState) -> GenerationState:
    host = locate_host(state["manifest"])
    state["host"] = host
    _watch(state, host.path)
    return state


def _resolve_reconciler_node(state: GenerationState) -> GenerationState:
    state["reconciler_manager"] = resolve_reconciler(state["manifest"], state["host"], state["managers"])
    return state


def _discover_templates_node(state: GenerationState) -> GenerationState:
    manifest = state["manifest"]
    context = TemplateContext(
        local=describe_package(manifest, is_local=True),
        dependencies=dependency_infos(manifest),
        namespace=state["request"].namespace,
        helper_modules={manager.module_name for manager in effect_managers(state["managers"])},
    )
    state["context"] = context
    state["templates"] = discover_templates(state["host"], context)
    return state


def _expand_templates_node(state: GenerationState) -> GenerationState:
    templates = expand_templates(state["templates"], state["context"])
    state["templates"] = templates
    _watch(state, *(template.path for template in templates))
    return state


def _parse_ports_node(state: GenerationState) -> GenerationState:
    attach_ports(state["templates"], state["context"])
    return state


def _check_hygiene_node(state: GenerationState) -> GenerationState:
    context: TemplateContext = state["context"]
    templates = state["templates"]
    check_packaging(context.local, context.dependencies)
    for template in templates:
        check_template_imports(
            template,
            context.tree(template.path),
            state["managers"],
            namespace=context.namespace,
        )
    return state


def create_discovery_subgraph() -> Any:
    graph = StateGraph(dict)
    graph.add_node("read_manifest", _read_manifest_node)
    graph.add_node("discover_managers", _discover_managers_node)
    graph.add_node("locate_host", _locate_host_node)
    graph.add_node("resolve_reconciler", _resolve_reconciler_node)
    graph.add_node("discover_templates", _discover_templates_node)
    graph.add_node("expand_templates", _expand_templates_node)
    graph.add_node("parse_ports", _parse_ports_node)
    graph.add_node("check_hygiene", _check_hygiene_node)

    graph.add_edge(START, "read_manifest")
    graph.add_edge("read_manifest", "discover_managers")
    graph.add_edge("discover_managers", "locate_host")
    graph.add_edge("locate_host", "resolve_reconciler")
    graph.add_edge("resolve_reconciler", "discover_templates")
    graph.add_edge("discover_templates", "expand_templates")
    graph.add_edge("expand_templates", "parse_ports")
    graph.add_edge("parse_ports", "check_hygiene")
    graph.add_edge("check_hygiene", END)
    return graph.compile()


def _build_symbols_node(state: GenerationState) -> GenerationState:
    state["symbols"] = SymbolTable(state["managers"], state["templates"])
    return state


def _transform_templates_node(state: GenerationState) -> GenerationState:
    context: TemplateContext = state["context"]
    transformed: Dict[str, str] = {}
    used: List[Tuple[str, str]] = []
    for template in state["templates"]:
        result = transform_template(template, context.tree(template.path), state["symbols"])
        template.used_helpers = list(result.used_helpers)
        transformed[template.key] = result.code
        used.extend(helper for helper in result.used_helpers if helper not in used)
    state["transformed"] = transformed
    state["used_helpers"] = used
    return state


def _assemble_specification_node(state: GenerationState) -> GenerationState:
    manifest = state["manifest"]
    templates = state["templates"]
    managers = state["managers"]
    ports = [port for template in templates for port in template.ports]
    state["specification"] = RuntimeSpecification(
        package_name=manifest.package_name,
        package_module=manifest.module_name,
        namespace=state["request"].namespace,
        managers=managers,
        effect_managers=effect_managers(managers),
        reconciler_manager=state["reconciler_manager"],
        templates=templates,
        transformed_templates=state["transformed"],
        used_helpers=state["used_helpers"],
        ports=ports,
        has_outgoing_ports=any(isinstance(port, OutgoingPort) for port in ports),
    )
    _watch(
        state,
        *(
            manager.helpers_path
            for manager in effect_managers(managers)
            if any(owner == manager.module_name for owner, _ in state["used_helpers"])
        ),
    )
    return state


def _emit_runtime_node(state: GenerationState) -> GenerationState:
    state["files"] = emit_runtime(state["specification"])
    return state


def _validate_syntax_node(state: GenerationState) -> GenerationState:
    state["syntax_validation"] = validate_generated_files(state["files"])
    return state


def create_emission_subgraph() -> Any:
    graph = StateGraph(dict)
    graph.add_node("build_symbols", _build_symbols_node)
    graph.add_node("transform_templates", _transform_templates_node)
    graph.add_node("assemble_specification", _assemble_specification_node)
    graph.add_node("emit_runtime", _emit_runtime_node)
    graph.add_node("validate_syntax", _validate_syntax_node)

    graph.add_edge(START, "build_symbols")
    graph.add_edge("build_symbols", "transform_templates")
    graph.add_edge("transform_templates", "assemble_specification")
    graph.add_edge("assemble_specification", "emit_runtime")
    graph.add_edge("emit_runtime", "validate_syntax")
    graph.add_edge("validate_syntax", END)
    return graph.compile()


__all__ = ["create_discovery_subgraph", "create_emission_subgraph"]
