"""Structural checks across the dependency graph before any code is emitted."""

from __future__ import annotations

import ast
import logging
from typing import Iterable, List

from .errors import ConfigurationError, HygieneError
from .manifest import TEMPLATE_SUFFIX, Manifest, read_manifest, source_root
from .models import DependencyInfo, ManagerDescriptor, TemplateDescriptor

logger = logging.getLogger(__name__)

CORE_MODULE = "saucer"
PLUMBING_TYPES = frozenset({"CoreCmd", "CoreRequest"})
GENERATED_REQUEST_TYPE = "Request"


def describe_package(manifest: Manifest, *, is_local: bool = False) -> DependencyInfo:
    return DependencyInfo(
        package_name=manifest.package_name,
        module_name=manifest.module_name,
        manifest_path=manifest.path,
        source_root=source_root(manifest),
        has_templates=manifest.metadata.has_templates,
        excludes_templates=manifest.excludes_templates(),
        is_local=is_local,
    )


def dependency_infos(manifest: Manifest) -> List[DependencyInfo]:
    """Template facts for every path dependency, ordered by dependency name."""
    return [describe_package(read_manifest(directory)) for _, directory in manifest.path_dependencies()]


def check_packaging(local: DependencyInfo, dependencies: Iterable[DependencyInfo]) -> None:
    """Template files must be excluded from the local wheel and from every dependency that ships them."""
    if not local.excludes_templates:
        raise ConfigurationError(
            f"template files must be excluded from packaging; add a pattern matching '*{TEMPLATE_SUFFIX}' "
            "to [tool.hatch.build] exclude",
            path=local.manifest_path,
        )
    for dependency in dependencies:
        if dependency.has_templates and not dependency.excludes_templates:
            raise ConfigurationError(
                f"dependency {dependency.package_name!r} declares has_templates but does not exclude "
                f"'*{TEMPLATE_SUFFIX}' files from packaging",
                path=dependency.manifest_path,
            )


def _module_matches(module: str, package: str) -> bool:
    return module == package or module.startswith(package + ".")


def check_template_imports(
    template: TemplateDescriptor,
    tree: ast.Module,
    managers: Iterable[ManagerDescriptor],
    *,
    namespace: str,
) -> None:
    """Reject imports that bypass the generated helper layer."""

    effect_managers = [manager for manager in managers if manager.module_name != CORE_MODULE]
    filename = str(template.path)
    for node in ast.walk(tree):
        if not isinstance(node, ast.ImportFrom):
            continue
        module = node.module or ""
        names = {alias.name for alias in node.names}

        if node.level == 0 and _module_matches(module, CORE_MODULE):
            leaked = sorted(names & PLUMBING_TYPES)
            if leaked:
                raise HygieneError(
                    f"template imports internal {', '.join(leaked)} from {module}; "
                    "use `from saucer import Cmd` and the generated helpers instead",
                    path=filename,
                )

        # Only a relative import that climbs out of the template package reaches the generated root.
        reaches_generated = node.level >= template.depth if node.level else namespace in module.split(".")
        if GENERATED_REQUEST_TYPE in names and reaches_generated:
            raise HygieneError(
                "template imports the generated Request type directly; build commands with helpers",
                path=filename,
            )

        if node.level == 0:
            for manager in effect_managers:
                if _module_matches(module, manager.module_name) and manager.request_type in names:
                    raise HygieneError(
                        f"template imports {manager.request_type} from {manager.module_name}; "
                        f"use `from {manager.module_name}.command import ...` helpers instead",
                        path=filename,
                    )


__all__ = [
    "check_packaging",
    "check_template_imports",
    "dependency_infos",
    "describe_package",
]
