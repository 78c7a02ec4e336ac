"""Resolve template imports from the host file and expand them transitively."""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .errors import ConfigurationError, DiscoveryError
from .host import HostFile
from .manifest import TEMPLATE_SUFFIX
from .models import DEFAULT_NAMESPACE, DependencyInfo, TemplateDescriptor
from .ports import parse_ports
from .syntax import parse_module

logger = logging.getLogger(__name__)

# Members of the generated package that a host may import directly.
GENERATED_MEMBERS = frozenset({"sync", "request", "ports", "core"})


def template_file(root: Path, segments: Sequence[str]) -> Path:
    return root.joinpath(*segments[:-1]) / f"{segments[-1]}{TEMPLATE_SUFFIX}"


def plain_file(root: Path, segments: Sequence[str]) -> Path:
    return root.joinpath(*segments[:-1]) / f"{segments[-1]}.py"


def _is_module_name(name: str) -> bool:
    return name[:1].islower()



def package_root(info: DependencyInfo) -> Path:
    """Source directory of a package that provides templates."""
    if info.source_root is None:
        raise ConfigurationError(
            f"no package directory for {info.module_name!r} (looked in src/ and the project root)",
            path=info.manifest_path,
        )
    return info.source_root

@dataclass
class TemplateContext:
    """Packages templates may come from, plus a parse cache shared by later stages."""

    local: DependencyInfo
    dependencies: List[DependencyInfo]
    namespace: str = DEFAULT_NAMESPACE
    helper_modules: Set[str] = field(default_factory=set)
    trees: Dict[Path, ast.Module] = field(default_factory=dict)

    def tree(self, path: Path) -> ast.Module:
        if path not in self.trees:
            self.trees[path] = parse_module(path.read_text(encoding="utf-8"), str(path), error=DiscoveryError)
        return self.trees[path]

    def packages_named(self, module: str) -> List[DependencyInfo]:
        return [dep for dep in self.dependencies if dep.module_name == module]

    def template_capable(self, module: str) -> List[DependencyInfo]:
        found = [dep for dep in self.packages_named(module) if dep.has_templates]
        if module == self.local.module_name and self.local.has_templates:
            found.insert(0, self.local)
        return found

    def package(self, module: str) -> DependencyInfo:
        if module == self.local.module_name:
            return self.local
        return self.packages_named(module)[0]


class _Collector:
    """Ordered, path-deduplicated list of discovered templates."""

    def __init__(self) -> None:
        self.templates: List[TemplateDescriptor] = []
        self._paths: Set[Path] = set()

    def push(self, info: DependencyInfo, module_path: Tuple[str, ...], *, is_root: bool) -> bool:
        root = package_root(info)
        path = template_file(root, module_path)
        if path in self._paths:
            return False
        if plain_file(root, module_path).exists():
            raise DiscoveryError(
                f"template `{'.'.join(module_path)}` exists both as {path.name} and "
                f"{module_path[-1]}.py; keep only the template",
                path=path,
            )
        self._paths.add(path)
        self.templates.append(
            TemplateDescriptor(
                module_name=module_path[-1],
                module_path=module_path,
                package_name=info.package_name,
                package_module=info.module_name,
                path=path,
                is_root=is_root,
            )
        )
        logger.debug("Template %s.%s (root=%s)", info.module_name, ".".join(module_path), is_root)
        return True


def _existing_template(root: Optional[Path], segments: Sequence[str]) -> Optional[Tuple[str, ...]]:
    """The template named by ``segments``, or by its parent when the leaf is a member."""
    if root is None:
        return None
    for candidate in (tuple(segments), tuple(segments[:-1])):
        if candidate and template_file(root, candidate).is_file():
            return candidate
    return None


def _namespace_tail(module: str, namespace: str) -> Optional[List[str]]:
    parts = module.split(".")
    if namespace not in parts:
        return None
    return parts[parts.index(namespace) + 1 :]


def _resolve_host_reference(
    segments: List[str],
    ctx: TemplateContext,
    collector: _Collector,
    host: HostFile,
) -> None:
    if not _is_module_name(segments[-1]):
        # A class or constant imported straight out of a template module.
        segments = segments[:-1]
        if len(segments) < 2:
            return
    if len(segments) < 2:
        raise DiscoveryError(
            f"template import `{ctx.namespace}.{segments[0]}` is ambiguous; include the package "
            f"namespace (`{ctx.namespace}.<package>.{segments[0]}`)",
            path=host.path,
        )

    head, rest = segments[0], segments[1:]
    if head == ctx.local.module_name:
        found = _existing_template(ctx.local.source_root, rest)
        if found is None:
            raise DiscoveryError(
                f"local template `{'.'.join(rest)}` not found (expected {'/'.join(rest)}{TEMPLATE_SUFFIX})",
                path=host.path,
            )
        if not ctx.local.has_templates:
            raise ConfigurationError(
                "local templates require `has_templates = true` in [tool.saucer]",
                path=ctx.local.manifest_path,
            )
        collector.push(ctx.local, found, is_root=True)
        return

    if head in ctx.helper_modules and not ctx.template_capable(head):
        return

    matches = [
        (dep, found)
        for dep in ctx.packages_named(head)
        for found in [_existing_template(dep.source_root, rest)]
        if found is not None
    ]
    if not matches:
        raise DiscoveryError(
            f"template `{'.'.join(segments)}` does not resolve to any dependency's {TEMPLATE_SUFFIX} file",
            path=host.path,
        )
    if len(matches) > 1:
        owners = ", ".join(dep.package_name for dep, _ in matches)
        raise DiscoveryError(
            f"template `{'.'.join(segments)}` is provided by several dependencies ({owners})",
            path=host.path,
        )
    dep, found = matches[0]
    if not dep.has_templates:
        raise ConfigurationError(
            f"dependency {dep.package_name!r} provides templates but does not set has_templates = true",
            path=dep.manifest_path,
        )
    collector.push(dep, found, is_root=True)


def discover_templates(host: HostFile, ctx: TemplateContext) -> List[TemplateDescriptor]:
    """Root templates referenced by the host's imports, in import order."""

    collector = _Collector()
    for node in host.tree.body:
        if isinstance(node, ast.Import):
            for alias in node.names:
                tail = _namespace_tail(alias.name, ctx.namespace)
                if tail:
                    raise DiscoveryError(
                        f"`import {alias.name}` cannot reference templates; use `from ... import ...`",
                        path=host.path,
                    )
        elif isinstance(node, ast.ImportFrom) and node.module:
            tail = _namespace_tail(node.module, ctx.namespace)
            if tail is None:
                continue
            if tail and tail[0] in GENERATED_MEMBERS:
                continue
            for alias in node.names:
                if alias.name == "*":
                    raise DiscoveryError(
                        f"glob import from `{node.module}` is not allowed; import templates by name",
                        path=host.path,
                    )
                if not tail and alias.name in GENERATED_MEMBERS:
                    continue
                _resolve_host_reference([*tail, alias.name], ctx, collector, host)
    return collector.templates


def _scan_template(template: TemplateDescriptor, ctx: TemplateContext, collector: _Collector) -> None:
    tree = ctx.tree(template.path)
    for node in tree.body:
        if isinstance(node, ast.Import):
            for alias in node.names:
                parts = alias.name.split(".")
                for dep in ctx.template_capable(parts[0]):
                    if len(parts) > 1 and _existing_template(dep.source_root, parts[1:]):
                        raise DiscoveryError(
                            f"`import {alias.name}` cannot reference templates; use `from ... import ...`",
                            path=template.path,
                        )
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            parts = node.module.split(".")
            capable = ctx.template_capable(parts[0])
            if not capable:
                continue
            if any(alias.name == "*" for alias in node.names):
                raise DiscoveryError(
                    f"glob import from template package `{node.module}` is not allowed",
                    path=template.path,
                )
            for alias in node.names:
                rel = [*parts[1:], alias.name]
                matches = [
                    (dep, found)
                    for dep in capable
                    for found in [_existing_template(dep.source_root, rel)]
                    if found
                ]
                if len(matches) > 1:
                    owners = ", ".join(dep.package_name for dep, _ in matches)
                    raise DiscoveryError(
                        f"template `{node.module}.{alias.name}` is provided by several packages ({owners})",
                        path=template.path,
                    )
                if matches:
                    collector.push(matches[0][0], matches[0][1], is_root=False)
        elif isinstance(node, ast.ImportFrom) and node.level > 0:
            _scan_relative(node, template, ctx, collector)


def _scan_relative(
    node: ast.ImportFrom,
    template: TemplateDescriptor,
    ctx: TemplateContext,
    collector: _Collector,
) -> None:
    info = ctx.package(template.package_module)
    root = package_root(info)
    base = template.path.parent
    for _ in range(node.level - 1):
        base = base.parent
    try:
        prefix = base.relative_to(root).parts
    except ValueError:
        return
    module_parts = tuple(node.module.split(".")) if node.module else ()
    for alias in node.names:
        if alias.name == "*":
            if module_parts and template_file(root, (*prefix, *module_parts)).is_file():
                raise DiscoveryError(
                    f"glob import from template `{node.module}` is not allowed",
                    path=template.path,
                )
            continue
        found = _existing_template(root, (*prefix, *module_parts, alias.name))
        if found:
            collector.push(info, found, is_root=False)


def expand_templates(roots: Iterable[TemplateDescriptor], ctx: TemplateContext) -> List[TemplateDescriptor]:
    """Follow template-to-template imports until no new template appears."""

    collector = _Collector()
    for template in roots:
        collector.push(ctx.package(template.package_module), template.module_path, is_root=template.is_root)
    index = 0
    while index < len(collector.templates):
        _scan_template(collector.templates[index], ctx, collector)
        index += 1
    logger.info(
        "Discovered %d template(s), %d transitive",
        len(collector.templates),
        sum(1 for template in collector.templates if not template.is_root),
    )
    return collector.templates


def attach_ports(templates: Iterable[TemplateDescriptor], ctx: TemplateContext) -> None:
    """Parse ports for every template; only root templates may declare any."""
    for template in templates:
        ports = parse_ports(ctx.tree(template.path), filename=str(template.path))
        if ports and not template.is_root:
            names = ", ".join(port.name for port in ports)
            raise DiscoveryError(
                f"template `{template.key}` declares ports ({names}) but is only imported by other "
                "templates; ports are allowed on templates the host imports directly",
                path=template.path,
            )
        template.ports = list(ports)


__all__ = [
    "GENERATED_MEMBERS",
    "TemplateContext",
    "attach_ports",
    "discover_templates",
    "expand_templates",
    "package_root",
    "plain_file",
    "template_file",
]
