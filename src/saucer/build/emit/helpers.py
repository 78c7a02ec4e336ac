"""Render one command-helper module per manager from its ``requests.py``."""

from __future__ import annotations

import ast
import builtins
import logging
from typing import Dict, List, Optional, Set

from ..errors import EmissionError
from ..managers import HELPERS_FILE
from ..models import ManagerDescriptor
from ..ports import RECEIVER_NAMES, annotation_leaf
from ..syntax import parse_module
from .common import render, request_class

logger = logging.getLogger(__name__)

MSG_PARAM = "Msg"
HELPERS_ALIAS = "_requests"


def _top_level_function(tree: ast.Module, name: str) -> Optional[ast.FunctionDef]:
    for node in tree.body:
        if isinstance(node, ast.FunctionDef) and node.name == name:
            return node
    return None


def _is_generic_over_msg(func: ast.FunctionDef) -> bool:
    for param in getattr(func, "type_params", None) or []:
        if getattr(param, "name", None) == MSG_PARAM:
            return True
    if func.returns is None:
        return False
    returns = func.returns
    if isinstance(returns, ast.Constant) and isinstance(returns.value, str):
        return MSG_PARAM in returns.value
    return any(isinstance(node, ast.Name) and node.id == MSG_PARAM for node in ast.walk(returns))


def validate_helper(manager: ManagerDescriptor, func: Optional[ast.FunctionDef], name: str) -> ast.FunctionDef:
    """Check one helper against the manager contract before forwarding it."""

    where = manager.helpers_path
    if func is None or name.startswith("_"):
        raise EmissionError(f"helper `{name}` is not a public function in {manager.module_name}.requests", path=where)
    leaf = annotation_leaf(func.returns)
    if leaf is None:
        raise EmissionError(
            f"helper `{name}` must declare a return type of {manager.request_type}[Msg]", path=where
        )
    if leaf != manager.request_type:
        raise EmissionError(
            f"helper `{name}` returns {leaf}, but {manager.module_name} requests are {manager.request_type}",
            path=where,
        )
    if not _is_generic_over_msg(func):
        raise EmissionError(f"helper `{name}` must be generic over Msg", path=where)
    arguments = func.args
    params = [*arguments.posonlyargs, *arguments.args, *arguments.kwonlyargs]
    if params and params[0].arg in RECEIVER_NAMES:
        raise EmissionError(f"helper `{name}` must be a plain function, not a method", path=where)
    if arguments.vararg is not None or arguments.kwarg is not None:
        raise EmissionError(f"helper `{name}` may not take *args or **kwargs", path=where)
    return func


def _import_bindings(tree: ast.Module, package: str) -> Dict[str, str]:
    """Name bound by each top-level import in ``requests.py`` -> import statement."""
    bindings: Dict[str, str] = {}
    for node in tree.body:
        if isinstance(node, ast.Import):
            for alias in node.names:
                bound = alias.asname or alias.name.split(".")[0]
                bindings[bound] = ast.unparse(ast.Import(names=[alias]))
        elif isinstance(node, ast.ImportFrom):
            if node.module == "__future__":
                continue
            module = node.module or ""
            if node.level:
                # requests.py sits at the package root, so one dot is the package itself.
                parent = package.split(".")
                if node.level > 1:
                    parent = parent[: -(node.level - 1)]
                module = ".".join([*parent, *([module] if module else [])])
            for alias in node.names:
                bound = alias.asname or alias.name
                bindings[bound] = ast.unparse(ast.ImportFrom(module=module, names=[alias], level=0))
    return bindings


def _local_definitions(tree: ast.Module) -> Set[str]:
    names: Set[str] = set()
    for node in tree.body:
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            names.add(node.name)
        elif isinstance(node, ast.Assign):
            names.update(target.id for target in node.targets if isinstance(target, ast.Name))
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            names.add(node.target.id)
    return names


def _signature_names(func: ast.FunctionDef) -> Set[str]:
    """Names the copied parameter list needs: annotations and default values."""
    names: Set[str] = set()
    arguments = func.args
    for param in [*arguments.posonlyargs, *arguments.args, *arguments.kwonlyargs]:
        if param.annotation is None:
            continue
        annotation = param.annotation
        if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
            annotation = ast.parse(annotation.value, mode="eval").body
        names.update(node.id for node in ast.walk(annotation) if isinstance(node, ast.Name))
    for default in [*arguments.defaults, *arguments.kw_defaults]:
        if default is None:
            continue
        names.update(node.id for node in ast.walk(default) if isinstance(node, ast.Name))
    return names


def _signature(func: ast.FunctionDef) -> str:
    return ast.unparse(func.args)


def _call_arguments(func: ast.FunctionDef) -> str:
    arguments = func.args
    positional = [param.arg for param in [*arguments.posonlyargs, *arguments.args]]
    keywords = [f"{param.arg}={param.arg}" for param in arguments.kwonlyargs]
    return ", ".join([*positional, *keywords])


def render_helper_module(manager: ManagerDescriptor, helpers: List[str], *, level: int = 1) -> str:
    """Forwarding functions wrapping each used helper in the manager's Request variant.

    ``level`` is the relative-import depth of the generated package root, 2 when
    the helpers live in the ``__init__.py`` of a template package.
    """

    path = manager.helpers_path
    if not path.is_file():
        raise EmissionError(f"{manager.module_name} has no {HELPERS_FILE} declaring its helpers", path=path)
    tree = parse_module(path.read_text(encoding="utf-8"), str(path), error=EmissionError)
    functions = [validate_helper(manager, _top_level_function(tree, name), name) for name in helpers]

    bindings = _import_bindings(tree, manager.module_name)
    local_names = _local_definitions(tree)
    imports: Set[str] = set()
    for func in functions:
        for name in _signature_names(func):
            if name == MSG_PARAM or hasattr(builtins, name):
                continue
            if name in bindings:
                imports.add(bindings[name])
            elif name in local_names:
                imports.add(f"from {manager.module_name}.requests import {name}")

    lines = [
        "from __future__ import annotations",
        "",
        "from typing import TypeVar",
        *sorted(imports),
        "",
        f"from {manager.module_name} import requests as {HELPERS_ALIAS}",
        "",
        f"from {'.' * level}request import Cmd, {request_class(manager)}",
        "",
        f'{MSG_PARAM} = TypeVar("{MSG_PARAM}")',
        "",
    ]
    for func in functions:
        lines += [
            "",
            f"def {func.name}({_signature(func)}) -> Cmd:",
            f"    return Cmd.single({request_class(manager)}({HELPERS_ALIAS}.{func.name}({_call_arguments(func)})))",
            "",
        ]
    lines += ["", f"__all__ = {sorted(helpers)!r}"]
    logger.debug("Helper module for %s: %s", manager.module_name, ", ".join(helpers))
    return render(lines)


__all__ = ["render_helper_module", "validate_helper"]
