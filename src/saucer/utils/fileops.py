from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Mapping


def ensure_dir(path: Path) -> None:
    """Create directory and parents if they don't exist."""
    path.mkdir(parents=True, exist_ok=True)


def read_text(path: Path) -> str | None:
    """Read file safely, return None if file doesn't exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def read_tree(root: Path) -> Dict[str, str] | None:
    """All ``.py`` files under root keyed by POSIX relative path, or None if root is missing."""
    if not root.is_dir():
        return None
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*.py"))
        if "__pycache__" not in path.parts
    }


def atomic_write_tree(root: Path, files: Mapping[str, str]) -> None:
    """Replace directory ``root`` with ``files`` using a staging directory and rename."""
    ensure_dir(root.parent)
    staging = Path(tempfile.mkdtemp(prefix=f".{root.name}-", dir=root.parent))
    backup: Path | None = None
    try:
        for relative, content in files.items():
            target = staging / relative
            ensure_dir(target.parent)
            target.write_text(content, encoding="utf-8")
        if root.exists():
            backup = Path(tempfile.mkdtemp(prefix=f".{root.name}-old-", dir=root.parent))
            backup.rmdir()
            os.replace(root, backup)
        os.replace(staging, root)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        if backup is not None and backup.exists() and not root.exists():
            os.replace(backup, root)
        raise
    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
