"""Filesystem helpers shared by the build pipeline."""

from .fileops import atomic_write_tree, ensure_dir, read_text, read_tree

__all__ = ["atomic_write_tree", "ensure_dir", "read_text", "read_tree"]
