"""Descriptors passed between generation stages."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

UNIT_TYPES = frozenset({"()", "None", ""})
DEFAULT_NAMESPACE = "runtime"

PortArgs = Tuple[Tuple[str, str], ...]


def to_snake(name: str) -> str:
    chars: List[str] = []
    for index, char in enumerate(name):
        if char.isupper() and index and not name[index - 1].isupper():
            chars.append("_")
        chars.append(char.lower())
    return "".join(chars)


class ManagerDescriptor(BaseModel):
    """One effect manager admitted from a dependency manifest."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    module_name: str
    variant: str
    request_type: str = "Request"
    manager_type: str = "Manager"
    self_msg_type: str = "()"
    entry_path: Path

    @property
    def has_self_msg(self) -> bool:
        return self.self_msg_type.strip() not in UNIT_TYPES

    @property
    def helpers_path(self) -> Path:
        return self.entry_path.parent / "requests.py"

    @property
    def ident(self) -> str:
        """Identifier prefix for this manager's locals in the generated loop."""
        return to_snake(self.variant)


class IncomingPort(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: Literal["incoming"] = "incoming"
    name: str
    args: PortArgs = ()


class OutgoingPort(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: Literal["outgoing"] = "outgoing"
    name: str
    args: PortArgs = ()


PortSpec = Annotated[Union[IncomingPort, OutgoingPort], Field(discriminator="direction")]


class TemplateDescriptor(BaseModel):
    """A ``.tea.py`` module woven into the generated package.

    ``used_helpers`` is filled by the transformer and ``ports`` by the port
    parser (root templates only).
    """

    module_name: str
    module_path: Tuple[str, ...]
    package_name: str
    package_module: str
    path: Path
    is_root: bool
    used_helpers: List[Tuple[str, str]] = Field(default_factory=list)
    ports: List[PortSpec] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return ".".join((self.package_module, *self.module_path))

    @property
    def output_path(self) -> str:
        return "/".join((self.package_module, *self.module_path)) + ".py"

    @property
    def depth(self) -> int:
        """Relative-import level that reaches the generated package root."""
        return len(self.module_path) + 1


class DependencyInfo(BaseModel):
    """Template-related facts about the local package or one path dependency."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    module_name: str
    manifest_path: Path
    source_root: Optional[Path] = None
    has_templates: bool = False
    excludes_templates: bool = False
    is_local: bool = False


class RuntimeSpecification(BaseModel):
    """Everything the emitter needs. Every field is required."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    package_module: str
    namespace: str
    managers: List[ManagerDescriptor]
    effect_managers: List[ManagerDescriptor]
    reconciler_manager: ManagerDescriptor
    templates: List[TemplateDescriptor]
    transformed_templates: Dict[str, str]
    used_helpers: List[Tuple[str, str]]
    ports: List[PortSpec]
    has_outgoing_ports: bool

    @property
    def incoming_ports(self) -> List[IncomingPort]:
        return [port for port in self.ports if isinstance(port, IncomingPort)]

    @property
    def outgoing_ports(self) -> List[OutgoingPort]:
        return [port for port in self.ports if isinstance(port, OutgoingPort)]

    @property
    def self_msg_managers(self) -> List[ManagerDescriptor]:
        return [manager for manager in self.managers if manager.has_self_msg]

    def port_owners(self) -> List[Tuple[TemplateDescriptor, PortSpec]]:
        return [(template, port) for template in self.templates for port in template.ports]

    def helpers_for(self, module_name: str) -> List[str]:
        return [helper for owner, helper in self.used_helpers if owner == module_name]


class GenerationRequest(BaseModel):
    """Explicit inputs of one generation run."""

    manifest_dir: Path
    output_dir: Optional[Path] = None
    namespace: str = DEFAULT_NAMESPACE

    @property
    def manifest_path(self) -> Path:
        return self.manifest_dir / "pyproject.toml"


class GenerationResult(BaseModel):
    """Generated files keyed by path relative to ``output_dir``."""

    output_dir: Path
    files: Dict[str, str]
    watched_paths: List[Path]
    specification: RuntimeSpecification

    def digest(self) -> str:
        sha = hashlib.sha256()
        for name in sorted(self.files):
            sha.update(name.encode("utf-8"))
            sha.update(b"\0")
            sha.update(self.files[name].encode("utf-8"))
            sha.update(b"\0")
        return sha.hexdigest()


__all__ = [
    "DEFAULT_NAMESPACE",
    "DependencyInfo",
    "GenerationRequest",
    "GenerationResult",
    "IncomingPort",
    "ManagerDescriptor",
    "OutgoingPort",
    "PortSpec",
    "RuntimeSpecification",
    "TemplateDescriptor",
    "UNIT_TYPES",
    "to_snake",
]
