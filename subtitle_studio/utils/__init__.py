"""Utility modules for the subtitle result cache."""

from .paths import atomic_write_json, ensure_subpath

__all__ = [
    "atomic_write_json",
    "ensure_subpath",
]
