"""Path utilities for safe file IO and directory handling.

Functions here centralize containment checks and atomic JSON writes.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def ensure_subpath(root: Path, sub: Path | str) -> Path:
    """Return absolute path for `root/sub` ensuring it stays within `root`.

    Raises ValueError if the resolved path escapes the root directory.
    """
    root_resolved = Path(root).resolve()
    candidate = (root_resolved / Path(sub)).resolve()
    try:
        # Will raise ValueError if candidate is not within root
        candidate.relative_to(root_resolved)
    except ValueError as e:
        raise ValueError(f"Path escapes root: {candidate} not in {root_resolved}") from e
    return candidate


def atomic_write_json(path: Path, data: Any, *, encoding: str = "utf-8") -> None:
    """Write JSON so readers see either the old file or the complete new one.

    The document is written to a temp file in the target directory, flushed
    to disk, then moved over `path` with ``os.replace``.

    Raises TypeError/ValueError if `data` is not JSON-serializable (nothing is
    written in that case). Propagates OSError/PermissionError to caller for
    handling; the temp file is removed first.
    """
    text = json.dumps(data, ensure_ascii=False)

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
