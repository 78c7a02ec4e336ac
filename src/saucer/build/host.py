"""Locate the host file that includes the generated runtime, and its reconciler."""

from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import ConfigurationError, DiscoveryError
from .manifest import Manifest, require_source_root
from .models import ManagerDescriptor
from .ports import dotted_name
from .syntax import parse_module

logger = logging.getLogger(__name__)

HOST_MARKER = "# saucer: include runtime"
ENTRY_POINTS = ("__init__.py", "__main__.py", "main.py", "app.py")
AUXILIARY_DIRS = ("scripts", "tests", "examples")
RUNTIME_CLASS = "Runtime"
RECONCILER_POSITION = 3
RECONCILER_KEYWORD = "reconciler"

_MARKER_RE = re.compile(r"^\s*#\s*saucer:\s*include runtime\s*$", re.MULTILINE)


@dataclass
class HostFile:
    path: Path
    source: str
    tree: ast.Module


def candidate_files(manifest: Manifest) -> List[Path]:
    """Entry points of the package, then scripts, tests and examples."""
    root = require_source_root(manifest)
    candidates = [root / name for name in ENTRY_POINTS if (root / name).is_file()]
    for directory in AUXILIARY_DIRS:
        base = manifest.directory / directory
        if base.is_dir():
            candidates.extend(sorted(path for path in base.rglob("*.py") if path.is_file()))
    return candidates


def has_marker(source: str) -> bool:
    return _MARKER_RE.search(source) is not None


def locate_host(manifest: Manifest) -> HostFile:
    """Return the single candidate file carrying the inclusion marker."""

    candidates = candidate_files(manifest)
    matches = [path for path in candidates if has_marker(path.read_text(encoding="utf-8"))]
    if not matches:
        raise DiscoveryError(
            f"no file contains `{HOST_MARKER}`; add it to the module that imports the runtime",
            path=manifest.directory,
        )
    if len(matches) > 1:
        listed = ", ".join(str(path) for path in matches)
        raise DiscoveryError(f"`{HOST_MARKER}` appears in more than one file: {listed}", path=manifest.directory)
    path = matches[0]
    source = path.read_text(encoding="utf-8")
    logger.info("Host file: %s", path)
    return HostFile(path=path, source=source, tree=parse_module(source, str(path), error=DiscoveryError))


def import_aliases(tree: ast.Module) -> Dict[str, str]:
    """Local name -> top-level module it was imported from (absolute imports only)."""
    aliases: Dict[str, str] = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                top = alias.name.split(".")[0]
                aliases[alias.asname or top] = top
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            top = node.module.split(".")[0]
            for alias in node.names:
                aliases[alias.asname or alias.name] = top
    return aliases


class _RuntimeCallFinder(ast.NodeVisitor):
    """Finds the reconciler argument of the first ``Runtime(...)`` call in source order."""

    def __init__(self) -> None:
        self.reconciler: Optional[ast.expr] = None

    def visit_Call(self, node: ast.Call) -> None:
        if self.reconciler is not None:
            return
        path = dotted_name(node.func)
        if path and path[-1] == RUNTIME_CLASS:
            for keyword in node.keywords:
                if keyword.arg == RECONCILER_KEYWORD:
                    self.reconciler = keyword.value
                    return
            if len(node.args) > RECONCILER_POSITION:
                self.reconciler = node.args[RECONCILER_POSITION]
                return
        self.generic_visit(node)


def _reconciler_path(expr: ast.expr) -> Optional[List[str]]:
    if isinstance(expr, ast.Call):
        expr = expr.func
    return dotted_name(expr)


def _by_name(managers: Iterable[ManagerDescriptor]) -> Dict[str, ManagerDescriptor]:
    table: Dict[str, ManagerDescriptor] = {}
    for manager in managers:
        table.setdefault(manager.module_name, manager)
        table.setdefault(manager.package_name, manager)
    return table


def resolve_reconciler(
    manifest: Manifest,
    host: HostFile,
    managers: List[ManagerDescriptor],
) -> ManagerDescriptor:
    """Pick the manager that receives reconciler messages.

    ``[tool.saucer] reconciler`` wins. Otherwise the fourth argument of the
    first ``Runtime(...)`` call in the candidate files is traced back through
    its imports to a manager module.
    """

    known = _by_name(managers)
    explicit = manifest.metadata.reconciler
    if explicit:
        if explicit not in known:
            raise ConfigurationError(
                f"[tool.saucer] reconciler = {explicit!r} is not a registered manager", path=manifest.path
            )
        return known[explicit]

    ordered = [host.path, *[path for path in candidate_files(manifest) if path != host.path]]
    for path in ordered:
        tree = host.tree if path == host.path else parse_module(
            path.read_text(encoding="utf-8"), str(path), error=DiscoveryError
        )
        finder = _RuntimeCallFinder()
        finder.visit(tree)
        if finder.reconciler is None:
            continue
        segments = _reconciler_path(finder.reconciler)
        if not segments:
            raise DiscoveryError(
                "cannot trace the reconciler passed to Runtime(...); set [tool.saucer] reconciler",
                path=path,
            )
        module = import_aliases(tree).get(segments[0], segments[0])
        if module not in known:
            raise DiscoveryError(
                f"reconciler `{'.'.join(segments)}` does not come from a registered manager; "
                "set [tool.saucer] reconciler",
                path=path,
            )
        logger.info("Reconciler messages go to %s", known[module].module_name)
        return known[module]

    raise DiscoveryError(
        "found no Runtime(init, update, view, reconciler, observer) call; set [tool.saucer] reconciler",
        path=manifest.directory,
    )


__all__ = [
    "HOST_MARKER",
    "HostFile",
    "candidate_files",
    "has_marker",
    "import_aliases",
    "locate_host",
    "resolve_reconciler",
]
