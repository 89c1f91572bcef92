from __future__ import annotations

import contextlib
import json
import os
from pathlib import Path
from typing import Any

from .errors import FormatError, StorageError


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for missing or empty files.
    Raises StorageError when the file cannot be read and FormatError when it is not valid JSON.
    """
    try:
        if not path.exists():
            return None
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StorageError("failed to read document", {"path": str(path)}) from e
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise FormatError("document is not valid JSON", {"path": str(path), "line": e.lineno}) from e


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, sort_keys: bool = False) -> None:
    """
    Atomically write JSON to disk by writing to a temp file then replacing.

    The payload is serialized before anything touches the disk, so an unserializable
    payload leaves the existing file untouched.
    """
    try:
        text = json.dumps(payload, indent=indent, sort_keys=sort_keys)
    except (TypeError, ValueError) as e:
        raise StorageError("document is not JSON serializable", {"path": str(path)}) from e

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            f.write(text)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise StorageError("failed to write document", {"path": str(path)}) from e
