from __future__ import annotations

"""Syntax checks for template sources and generated runtime files."""

import ast
from typing import Any, Dict, Mapping, Type

from .errors import EmissionError, GenerationError


def _format_syntax_error(exc: SyntaxError) -> Dict[str, Any]:
    message = exc.msg or "invalid syntax"
    location_parts = []
    if exc.lineno is not None:
        location_parts.append(f"line {exc.lineno}")
    if exc.offset is not None:
        location_parts.append(f"column {exc.offset}")
    location = f" ({', '.join(location_parts)})" if location_parts else ""
    details: Dict[str, Any] = {
        "success": False,
        "message": f"Syntax error: {message}{location}",
        "lineno": exc.lineno,
        "offset": exc.offset,
    }
    if exc.text is not None:
        details["source_line"] = exc.text.rstrip("\n")
    return details


def parse_module(
    source: str,
    filename: str,
    *,
    error: Type[GenerationError],
) -> ast.Module:
    """``ast.parse`` that reports failures as the given generation error."""
    try:
        return ast.parse(source, filename=filename)
    except SyntaxError as exc:
        raise error(_format_syntax_error(exc)["message"], path=filename) from exc


def validate_generated_files(files: Mapping[str, str]) -> Dict[str, Any]:
    """Parse every generated Python file and summarise the outcome.

    The summary maps each file name to its result. The first failing file
    raises :class:`EmissionError` so nothing is written.
    """

    summary: Dict[str, Any] = {"success": True, "files": {}}
    for file_name, source in files.items():
        if not file_name.endswith(".py"):
            continue
        try:
            ast.parse(source, filename=file_name)
        except SyntaxError as exc:
            result = _format_syntax_error(exc)
            result["file"] = file_name
            summary["success"] = False
            summary["files"][file_name] = result
            raise EmissionError(f"generated code does not parse: {result['message']}", path=file_name) from exc
        summary["files"][file_name] = {"success": True, "message": "Syntax valid"}
    return summary


__all__ = ["parse_module", "validate_generated_files"]
