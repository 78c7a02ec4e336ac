"""Read ``pyproject.toml`` manifests into a structured, read-only view."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "pyproject.toml"
TEMPLATE_SUFFIX = ".tea.py"
_MISSING = object()


class SaucerMetadata(BaseModel):
    """The ``[tool.saucer]`` table."""

    model_config = ConfigDict(extra="ignore", strict=True)

    effect_manager: bool = False
    request_type: str = "Request"
    manager_type: str = "Manager"
    self_msg_type: str = "()"
    has_templates: bool = False
    reconciler: Optional[str] = None


def module_name_for(package_name: str) -> str:
    return package_name.replace("-", "_").replace(".", "_")


class Manifest:
    """Parsed manifest of one package."""

    def __init__(self, path: Path, data: Mapping[str, Any]) -> None:
        self.path = path
        self.data = data
        project = data.get("project")
        if not isinstance(project, Mapping) or not isinstance(project.get("name"), str):
            raise ConfigurationError("missing [project].name", path=path)
        self.package_name: str = project["name"]
        self.module_name = module_name_for(self.package_name)
        self.metadata = self._read_metadata()

    @property
    def directory(self) -> Path:
        return self.path.parent

    def lookup(self, *keys: str, default: Any = None) -> Any:
        """Nested key lookup, e.g. ``lookup("tool", "saucer", "has_templates")``."""
        node: Any = self.data
        for key in keys:
            if not isinstance(node, Mapping):
                return default
            node = node.get(key, _MISSING)
            if node is _MISSING:
                return default
        return node

    @property
    def requirements(self) -> List[str]:
        deps = self.lookup("project", "dependencies", default=[])
        return [str(dep) for dep in deps] if isinstance(deps, list) else []

    def path_dependencies(self) -> List[Tuple[str, Path]]:
        """``[tool.uv.sources]`` entries with a ``path``, sorted by name."""
        sources = self.lookup("tool", "uv", "sources", default={})
        if not isinstance(sources, Mapping):
            raise ConfigurationError("[tool.uv.sources] must be a table", path=self.path)
        found: List[Tuple[str, Path]] = []
        for name, source in sources.items():
            if isinstance(source, Mapping) and isinstance(source.get("path"), str):
                found.append((name, (self.directory / source["path"]).resolve()))
        return sorted(found, key=lambda item: item[0])

    def packaging_excludes(self) -> List[str]:
        """Exclusion patterns from hatch and setuptools build configuration."""
        patterns: List[str] = []
        patterns.extend(_string_list(self.lookup("tool", "hatch", "build", "exclude")))
        targets = self.lookup("tool", "hatch", "build", "targets", default={})
        if isinstance(targets, Mapping):
            for name in sorted(targets):
                target = targets[name]
                if isinstance(target, Mapping):
                    patterns.extend(_string_list(target.get("exclude")))
        package_data = self.lookup("tool", "setuptools", "exclude-package-data", default={})
        if isinstance(package_data, Mapping):
            for name in sorted(package_data):
                patterns.extend(_string_list(package_data[name]))
        return patterns

    def excludes_templates(self) -> bool:
        return any(TEMPLATE_SUFFIX in pattern for pattern in self.packaging_excludes())

    def _read_metadata(self) -> SaucerMetadata:
        table = self.lookup("tool", "saucer", default={})
        if not isinstance(table, Mapping):
            raise ConfigurationError("[tool.saucer] must be a table", path=self.path)
        try:
            return SaucerMetadata.model_validate(dict(table))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            raise ConfigurationError(f"invalid [tool.saucer] metadata ({problems})", path=self.path) from exc


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def read_manifest(path: Path) -> Manifest:
    """Parse a manifest, accepting either the file or its directory."""
    if path.is_dir():
        path = path / MANIFEST_NAME
    try:
        with path.open("rb") as handle:
            data: Dict[str, Any] = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError("manifest not found", path=path) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"malformed manifest: {exc}", path=path) from exc
    logger.debug("Read manifest %s", path)
    return Manifest(path, data)


def source_root(manifest: Manifest) -> Optional[Path]:
    """Import root of the package: ``src/<module>`` first, then ``<module>``."""
    for candidate in (
        manifest.directory / "src" / manifest.module_name,
        manifest.directory / manifest.module_name,
    ):
        if candidate.is_dir():
            return candidate
    return None


def require_source_root(manifest: Manifest) -> Path:
    root = source_root(manifest)
    if root is None:
        raise ConfigurationError(
            f"no package directory for {manifest.module_name!r} (looked in src/ and the project root)",
            path=manifest.path,
        )
    return root


__all__ = [
    "MANIFEST_NAME",
    "Manifest",
    "SaucerMetadata",
    "TEMPLATE_SUFFIX",
    "module_name_for",
    "read_manifest",
    "require_source_root",
    "source_root",
]
