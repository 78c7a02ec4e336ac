"""Rewrite template modules into modules of the generated package."""

from __future__ import annotations

import ast
import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .errors import TransformError
from .models import OutgoingPort, TemplateDescriptor
from .ports import INCOMING_LEAF, is_port_decorator, is_port_function
from .symbols import SymbolTable
from .syntax import parse_module

logger = logging.getLogger(__name__)

DEFAULT_MSG_TYPE = "Msg"


@dataclass
class TransformedTemplate:
    code: str
    used_helpers: List[Tuple[str, str]] = field(default_factory=list)


def _message_type(returns: Optional[ast.expr]) -> ast.expr:
    """``Sub[Msg]`` -> ``Msg``; anything without a subscript falls back to ``Msg``."""
    if isinstance(returns, ast.Constant) and isinstance(returns.value, str):
        try:
            returns = ast.parse(returns.value, mode="eval").body
        except SyntaxError:
            returns = None
    if isinstance(returns, ast.Subscript):
        base = returns.value
        leaf = base.id if isinstance(base, ast.Name) else getattr(base, "attr", None)
        if leaf == INCOMING_LEAF:
            return copy.deepcopy(returns.slice)
    return ast.Name(id=DEFAULT_MSG_TYPE, ctx=ast.Load())


def strip_ports(tree: ast.Module, template: TemplateDescriptor) -> ast.Module:
    """Drop outgoing port stubs and turn incoming ports into message constructors."""

    tracked = {port.name: port for port in template.ports}
    body: List[ast.stmt] = []
    for node in tree.body:
        if is_port_function(node):
            declared = tracked.get(node.name)
            if declared is None:
                raise TransformError(f"port `{node.name}` was not recorded during parsing", path=template.path)
            if isinstance(declared, OutgoingPort):
                continue
            node.decorator_list = [item for item in node.decorator_list if not is_port_decorator(item)]
            node.returns = _message_type(node.returns)
        body.append(node)
    tree.body = body
    return tree


class _ImportRewriter(ast.NodeTransformer):
    def __init__(self, template: TemplateDescriptor, symbols: SymbolTable) -> None:
        self.template = template
        self.symbols = symbols
        self.filename = str(template.path)
        self.used_helpers: List[Tuple[str, str]] = []

    def _record(self, helper: Tuple[str, str]) -> None:
        if helper not in self.used_helpers:
            self.used_helpers.append(helper)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> object:
        if node.level > 0:
            return self._rewrite_relative(node)
        module = node.module or ""
        kept: List[ast.alias] = []
        groups: Dict[str, List[ast.alias]] = {}
        for alias in node.names:
            resolution = self.symbols.resolve(module, alias.name, filename=self.filename)
            if resolution is None:
                kept.append(alias)
                continue
            if resolution.action == "drop":
                continue
            groups.setdefault(resolution.module, []).append(ast.alias(name=resolution.name, asname=alias.asname))
            if resolution.helper is not None:
                self._record(resolution.helper)
        replacement: List[ast.stmt] = []
        if kept:
            replacement.append(ast.ImportFrom(module=module, names=kept, level=0))
        for target, aliases in groups.items():
            replacement.append(ast.ImportFrom(module=target, names=aliases, level=self.template.depth))
        return replacement or None

    def _rewrite_relative(self, node: ast.ImportFrom) -> object:
        package = [self.template.package_module, *self.template.module_path[:-1]]
        climb = node.level - 1
        if climb >= len(package):
            raise TransformError(
                f"relative import `{'.' * node.level}{node.module or ''}` leaves package "
                f"{self.template.package_module}",
                path=self.filename,
            )
        target = package[: len(package) - climb] + (node.module.split(".") if node.module else [])
        local: List[ast.alias] = []
        absolute: List[ast.alias] = []
        for alias in node.names:
            if self.symbols.is_template((*target, alias.name)) or self.symbols.is_template(tuple(target)):
                local.append(alias)
            else:
                absolute.append(alias)
        replacement: List[ast.stmt] = []
        if local:
            replacement.append(ast.ImportFrom(module=node.module, names=local, level=node.level))
        if absolute:
            # Non-template siblings stay in the real package.
            replacement.append(ast.ImportFrom(module=".".join(target), names=absolute, level=0))
        return replacement


def transform_template(
    template: TemplateDescriptor,
    tree: ast.Module,
    symbols: SymbolTable,
) -> TransformedTemplate:
    """Port pass, then import pass, then unparse and re-parse."""

    working = strip_ports(copy.deepcopy(tree), template)
    rewriter = _ImportRewriter(template, symbols)
    working = rewriter.visit(working)
    ast.fix_missing_locations(working)
    code = ast.unparse(working) + "\n"
    parse_module(code, str(template.path), error=TransformError)
    logger.debug("Transformed %s (%d helper(s))", template.key, len(rewriter.used_helpers))
    return TransformedTemplate(code=code, used_helpers=rewriter.used_helpers)


__all__ = ["TransformedTemplate", "strip_ports", "transform_template"]
