"""
JSON persistence for the whitelist and moderation records.

Files are read once at startup and written once at shutdown. Any failure is
raised as :class:`PersistenceFailure` so the process never runs on state it
could not load, nor exits silently without saving.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, TypeVar

from nailongwatch.errors import PersistenceFailure
from nailongwatch.util.logger import get_logger

logger = get_logger("json_store")

T = TypeVar("T")


def save_json_data(data: Any, path: Path) -> None:
    """Serialize ``data`` to ``path`` atomically (write to a sibling temp file, then replace)."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except (OSError, TypeError, ValueError) as exc:
        raise PersistenceFailure(f"failed to save {path}: {exc}") from exc
    logger.debug("[JSON STORE] Saved %s", path)


def load_json_data(default: T, path: Path) -> T | Any:
    """
    Load JSON from ``path``, creating the file from ``default`` when absent.

    Raises:
        PersistenceFailure: If the file exists but cannot be read or parsed.
    """
    if not path.exists():
        logger.info("[JSON STORE] %s not found; initialising with defaults", path)
        save_json_data(default, path)
        return default

    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, ValueError) as exc:
        raise PersistenceFailure(f"failed to load {path}: {exc}") from exc


def int_keyed(mapping: Mapping[str, T]) -> Dict[int, T]:
    """Restore the numeric ids JSON turned into string keys."""
    try:
        return {int(key): value for key, value in mapping.items()}
    except (TypeError, ValueError, AttributeError) as exc:
        raise PersistenceFailure(f"expected an id-keyed mapping: {exc}") from exc


def str_keyed(mapping: Mapping[int, T]) -> Dict[str, T]:
    return {str(key): value for key, value in mapping.items()}
