"""Shared utility functions."""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def atomic_write_text(path: Path | str, content: str) -> Path:
    """Write text atomically by writing to a temp file then renaming.

    Args:
        path: Target file path.
        content: Text to write.

    Returns:
        The target path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp_path), str(path))
    except BaseException:
        # Clean up temp file on any failure
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    return path


def atomic_write_json(path: Path | str, data: Any) -> Path:
    """Write JSON data atomically.

    Args:
        path: Target file path.
        data: JSON-serialisable data to write.

    Returns:
        The target path.
    """
    return atomic_write_text(path, json.dumps(data, indent=2, default=str))


def load_json(path: Path | str) -> dict | None:
    """Load JSON data from a file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed JSON data, or None if the file is missing or invalid.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return None


def ensure_dir(path: Path | str) -> Path:
    """Ensure a directory exists, creating parent directories as needed.

    Args:
        path: Directory path to create.

    Returns:
        The Path object for the directory.
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
