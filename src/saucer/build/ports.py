"""Parse ``@port`` declarations out of root templates."""

from __future__ import annotations

import ast
import logging
from typing import List, Optional, Sequence, Tuple

from .errors import DiscoveryError
from .models import IncomingPort, OutgoingPort, PortArgs, PortSpec
from .syntax import parse_module

logger = logging.getLogger(__name__)

PORT_DECORATOR = "port"
OUTGOING_LEAF = "Cmd"
INCOMING_LEAF = "Sub"
RECEIVER_NAMES = ("self", "cls")


def dotted_name(node: ast.AST) -> Optional[List[str]]:
    """``a.b.c`` -> ``["a", "b", "c"]``; ``None`` for anything else."""
    if isinstance(node, ast.Name):
        return [node.id]
    if isinstance(node, ast.Attribute):
        base = dotted_name(node.value)
        return None if base is None else [*base, node.attr]
    return None


def annotation_leaf(node: Optional[ast.AST]) -> Optional[str]:
    """Leaf type name of an annotation: ``saucer.Cmd[Msg]`` -> ``Cmd``."""
    if node is None:
        return None
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            parsed = ast.parse(node.value, mode="eval")
        except SyntaxError:
            return None
        return annotation_leaf(parsed.body)
    if isinstance(node, ast.Subscript):
        return annotation_leaf(node.value)
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def is_port_decorator(node: ast.expr) -> bool:
    target = node.func if isinstance(node, ast.Call) else node
    path = dotted_name(target)
    return bool(path) and path[-1] == PORT_DECORATOR


def is_port_function(node: ast.AST) -> bool:
    return isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and any(
        is_port_decorator(decorator) for decorator in node.decorator_list
    )


def port_args(func: ast.FunctionDef | ast.AsyncFunctionDef, *, filename: str) -> PortArgs:
    arguments = func.args
    if arguments.vararg is not None or arguments.kwarg is not None:
        raise DiscoveryError(
            f"port `{func.name}` uses *args/**kwargs; declare each argument explicitly", path=filename
        )
    params = [*arguments.posonlyargs, *arguments.args, *arguments.kwonlyargs]
    if params and params[0].arg in RECEIVER_NAMES:
        raise DiscoveryError(f"port `{func.name}` must be a module-level function, not a method", path=filename)
    captured: List[Tuple[str, str]] = []
    for param in params:
        if param.annotation is None:
            raise DiscoveryError(
                f"port `{func.name}` argument `{param.arg}` needs a type annotation", path=filename
            )
        captured.append((param.arg, ast.unparse(param.annotation)))
    return tuple(captured)


def parse_ports(source: str | ast.Module, *, filename: str) -> List[PortSpec]:
    """Collect port declarations in declaration order."""

    tree = source if isinstance(source, ast.Module) else parse_module(source, filename, error=DiscoveryError)
    ports: List[PortSpec] = []
    for node in tree.body:
        if not is_port_function(node):
            continue
        leaf = annotation_leaf(node.returns)
        args = port_args(node, filename=filename)
        if leaf == OUTGOING_LEAF:
            ports.append(OutgoingPort(name=node.name, args=args))
        elif leaf == INCOMING_LEAF:
            ports.append(IncomingPort(name=node.name, args=args))
        else:
            raise DiscoveryError(
                f"port `{node.name}` must return Cmd[...] (outgoing) or Sub[...] (incoming)", path=filename
            )
        logger.debug("Port %s (%s) in %s", node.name, ports[-1].direction, filename)
    return ports


def payload_type(args: Sequence[Tuple[str, str]]) -> str:
    """``None`` for no arguments, the type for one, a tuple type for several."""
    if not args:
        return "None"
    if len(args) == 1:
        return args[0][1]
    return f"tuple[{', '.join(kind for _, kind in args)}]"


def payload_value(args: Sequence[Tuple[str, str]]) -> str:
    """Expression packing the arguments in the shape ``payload_type`` describes."""
    if not args:
        return "None"
    if len(args) == 1:
        return args[0][0]
    return f"({', '.join(name for name, _ in args)})"


def to_camel(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


__all__ = [
    "annotation_leaf",
    "dotted_name",
    "is_port_decorator",
    "is_port_function",
    "parse_ports",
    "payload_type",
    "payload_value",
    "port_args",
    "to_camel",
]
