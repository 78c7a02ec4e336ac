"""Resolution table from symbolic template imports to generated modules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Optional, Set, Tuple

from .errors import TransformError
from .managers import CORE_PACKAGE
from .models import ManagerDescriptor, TemplateDescriptor

logger = logging.getLogger(__name__)

COMMAND_SEGMENT = "command"
REQUEST_MODULE = "request"
CORE_HELPER_MODULE = "core"
CMD_NAME = "Cmd"
PARSE_ONLY_NAMES = frozenset({"Sub", "port"})


@dataclass(frozen=True)
class Resolution:
    """Where one imported name lives in the generated package.

    ``module`` is relative to the generated package root. ``helper`` is the
    ``(manager module, helper name)`` pair when the name is a command helper.
    """

    action: Literal["rewrite", "drop"]
    module: str = ""
    name: str = ""
    helper: Optional[Tuple[str, str]] = None


DROP = Resolution("drop")


class SymbolTable:
    """Built once from the discovered managers and templates."""

    def __init__(self, managers: Iterable[ManagerDescriptor], templates: Iterable[TemplateDescriptor]) -> None:
        self.managers: Dict[str, ManagerDescriptor] = {
            manager.module_name: manager for manager in managers if manager.module_name != CORE_PACKAGE
        }
        self.templates: Set[Tuple[str, ...]] = {
            (template.package_module, *template.module_path) for template in templates
        }
        self.template_packages: Set[str] = {template.package_module for template in templates}
        self._entries: Dict[Tuple[str, str], Resolution] = {
            (CORE_PACKAGE, CMD_NAME): Resolution("rewrite", REQUEST_MODULE, CMD_NAME),
        }
        for name in PARSE_ONLY_NAMES:
            self._entries[(CORE_PACKAGE, name)] = DROP

    def is_template(self, parts: Tuple[str, ...]) -> bool:
        return parts in self.templates

    def resolve(self, module: str, name: str, *, filename: str) -> Optional[Resolution]:
        """Resolution for ``from <module> import <name>``; ``None`` leaves it untouched."""

        entry = self._entries.get((module, name))
        if entry is not None:
            return entry

        parts = tuple(module.split("."))
        if parts == (CORE_PACKAGE, COMMAND_SEGMENT):
            return Resolution("rewrite", CORE_HELPER_MODULE, name, helper=(CORE_PACKAGE, name))
        if len(parts) == 2 and parts[1] == COMMAND_SEGMENT and parts[0] in self.managers:
            return Resolution("rewrite", parts[0], name, helper=(parts[0], name))
        if COMMAND_SEGMENT in parts:
            raise TransformError(
                f"unrecognized helper import `from {module} import {name}`; helpers come from "
                f"`saucer.command` or `<manager>.command` of a registered manager",
                path=filename,
            )

        if parts[0] in self.template_packages:
            if self.is_template((*parts, name)) or self.is_template(parts):
                return Resolution("rewrite", module, name)
        return None


__all__ = ["DROP", "Resolution", "SymbolTable"]
