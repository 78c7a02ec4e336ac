"""Discover effect managers among a package's path dependencies."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Set, Tuple

import saucer

from .errors import ConfigurationError
from .manifest import Manifest, read_manifest, require_source_root
from .models import ManagerDescriptor

logger = logging.getLogger(__name__)

CORE_PACKAGE = "saucer"
CORE_VARIANT = "Core"
PORTS_VARIANT = "Ports"
MANAGER_SUFFIX = "Manager"
BREADCRUMB_FILE = "command.py"
HELPERS_FILE = "requests.py"
BREADCRUMB_HINTS = ("commands are generated", HELPERS_FILE)


def core_manager() -> ManagerDescriptor:
    """Descriptor for the loop's own manager; always first, never an effect manager."""
    return ManagerDescriptor(
        package_name=CORE_PACKAGE,
        module_name=CORE_PACKAGE,
        variant=CORE_VARIANT,
        request_type="CoreRequest",
        manager_type="CoreManager",
        self_msg_type="()",
        entry_path=Path(saucer.__file__).resolve(),
    )


def variant_for(manager_type: str, module_name: str) -> str:
    variant = manager_type[: -len(MANAGER_SUFFIX)] if manager_type.endswith(MANAGER_SUFFIX) else manager_type
    if variant:
        return variant
    return "".join(part[:1].upper() + part[1:] for part in module_name.split("_") if part)


def check_breadcrumb(root: Path) -> None:
    """``command.py`` may only hold comments pointing at ``requests.py``."""
    path = root / BREADCRUMB_FILE
    if not path.is_file():
        return
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return
    if any(line.strip() and not line.strip().startswith("#") for line in text.splitlines()):
        raise ConfigurationError(
            "command.py must only contain comments; helpers belong in requests.py", path=path
        )
    lowered = text.lower()
    if not any(hint in lowered for hint in BREADCRUMB_HINTS):
        raise ConfigurationError(
            "command.py must explain that commands are generated from requests.py", path=path
        )


def _descriptor(manifest: Manifest) -> ManagerDescriptor:
    root = require_source_root(manifest)
    check_breadcrumb(root)
    meta = manifest.metadata
    return ManagerDescriptor(
        package_name=manifest.package_name,
        module_name=manifest.module_name,
        variant=variant_for(meta.manager_type, manifest.module_name),
        request_type=meta.request_type,
        manager_type=meta.manager_type,
        self_msg_type=meta.self_msg_type,
        entry_path=root / "__init__.py",
    )


def discover_managers(manifest: Manifest) -> Tuple[List[ManagerDescriptor], List[Path]]:
    """Return the manager list (core first) and every manifest path read."""

    managers: List[ManagerDescriptor] = [core_manager()]
    watched: List[Path] = [manifest.path]
    seen_variants: Set[str] = {CORE_VARIANT}

    for name, directory in manifest.path_dependencies():
        dep_manifest = read_manifest(directory)
        watched.append(dep_manifest.path)
        if not dep_manifest.metadata.effect_manager:
            continue
        if dep_manifest.module_name == CORE_PACKAGE:
            continue
        descriptor = _descriptor(dep_manifest)
        if descriptor.variant == PORTS_VARIANT or descriptor.variant in seen_variants:
            raise ConfigurationError(
                f"manager {name!r} uses request variant {descriptor.variant!r}, which is reserved or taken",
                path=dep_manifest.path,
            )
        seen_variants.add(descriptor.variant)
        managers.append(descriptor)
        watched.append(descriptor.entry_path.parent / BREADCRUMB_FILE)
        logger.debug("Registered effect manager %s (variant %s)", descriptor.module_name, descriptor.variant)

    return managers, watched


def effect_managers(managers: List[ManagerDescriptor]) -> List[ManagerDescriptor]:
    return [manager for manager in managers if manager.module_name != CORE_PACKAGE]


__all__ = [
    "BREADCRUMB_FILE",
    "CORE_PACKAGE",
    "CORE_VARIANT",
    "HELPERS_FILE",
    "PORTS_VARIANT",
    "check_breadcrumb",
    "core_manager",
    "discover_managers",
    "effect_managers",
    "variant_for",
]
