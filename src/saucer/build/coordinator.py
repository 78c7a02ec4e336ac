"""Coordinator for executing the discovery and emission phases."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any, Iterable, List, Tuple

from saucer.utils.fileops import atomic_write_tree, read_text, read_tree

from .emit.common import HEADER
from .errors import EmissionError, GenerationError
from .models import GenerationRequest, GenerationResult
from .state import GenerationPhase
from .subgraphs import create_discovery_subgraph, create_emission_subgraph

logger = logging.getLogger(__name__)

GenerationState = MutableMapping[str, Any]

_DISCOVERY_SUBGRAPH = create_discovery_subgraph()
_EMISSION_SUBGRAPH = create_emission_subgraph()

PHASES: Tuple[Tuple[str, str, Any], ...] = (
    ("discovery", "Read manifests, find managers, host file, templates and ports; check hygiene.", _DISCOVERY_SUBGRAPH),
    ("emission", "Rewrite templates and render the runtime package.", _EMISSION_SUBGRAPH),
)


def _start_phase(state: GenerationState, name: str, description: str) -> Tuple[GenerationPhase, float]:
    started = time.time()
    phase: GenerationPhase = {
        "name": name,
        "description": description,
        "status": "in_progress",
        "started_at": started,
    }
    state["phase"] = phase
    logger.info("Starting %s phase", name)
    return phase, started


def _finish_phase(
    state: GenerationState,
    phase: GenerationPhase,
    started: float,
    *,
    success: bool,
    summary: str,
    errors: Iterable[str] | None = None,
) -> None:
    completed = time.time()
    phase["completed_at"] = completed
    phase["duration"] = max(0.0, completed - started)
    phase["status"] = "complete" if success else "failed"
    if summary:
        phase["summary"] = summary
    error_messages = list(errors or [])
    if error_messages:
        phase["error"] = error_messages[0]
    state.setdefault("phases", []).append(phase)
    state["phase"] = phase
    logger.info("Finished %s phase (%s) in %.3fs: %s", phase["name"], phase["status"], phase["duration"], summary)


def _invoke_subgraph(graph: Any, state: GenerationState) -> GenerationState:
    result = graph.invoke(state)
    if isinstance(result, MutableMapping):
        return result
    if isinstance(result, Mapping):
        state.update(result)
    return state


def _phase_summary(name: str, state: GenerationState) -> str:
    if name == "discovery":
        return (
            f"{len(state.get('managers', [])) - 1} effect manager(s), "
            f"{len(state.get('templates', []))} template(s)"
        )
    return f"{len(state.get('files', {}))} file(s)"


def generate_runtime(request: GenerationRequest) -> GenerationResult:
    """Run every phase and return the generated files without writing them."""

    working_state: GenerationState = {"request": request, "watched": [], "phases": []}
    for name, description, graph in PHASES:
        phase, started = _start_phase(working_state, name, description)
        try:
            working_state = _invoke_subgraph(graph, working_state)
        except GenerationError as exc:
            _finish_phase(working_state, phase, started, success=False, summary=f"{name} failed", errors=[str(exc)])
            logger.error("Generation failed during %s: %s", name, exc)
            raise
        _finish_phase(working_state, phase, started, success=True, summary=_phase_summary(name, working_state))

    output_dir = request.output_dir or working_state["host"].path.parent / request.namespace
    watched: List[Path] = list(working_state["watched"])
    return GenerationResult(
        output_dir=output_dir,
        files=working_state["files"],
        watched_paths=watched,
        specification=working_state["specification"],
    )


def is_up_to_date(result: GenerationResult) -> bool:
    return read_tree(result.output_dir) == result.files


def write_runtime(result: GenerationResult) -> bool:
    """Write the generated package all-or-nothing. Returns False when nothing changed."""

    if is_up_to_date(result):
        logger.info("Runtime at %s is up to date", result.output_dir)
        return False
    if result.output_dir.exists():
        marker = read_text(result.output_dir / "__init__.py")
        if marker is None or not marker.startswith(HEADER):
            raise EmissionError(
                "refusing to replace a directory that was not generated by saucer", path=result.output_dir
            )
    atomic_write_tree(result.output_dir, result.files)
    logger.info("Wrote %d file(s) to %s", len(result.files), result.output_dir)
    return True


def run_generation(request: GenerationRequest) -> GenerationResult:
    result = generate_runtime(request)
    write_runtime(result)
    return result


__all__ = ["generate_runtime", "is_up_to_date", "run_generation", "write_runtime"]
