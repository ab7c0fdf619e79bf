"""
Per-server opt-in flag for silent auto moderation.

Every image-bearing message reads the whitelist, while only admin commands
write it, so it is guarded by a reader-writer lock of its own rather than the
lock protecting moderation records.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping

from nailongwatch.storage.json_store import int_keyed, load_json_data, save_json_data, str_keyed
from nailongwatch.util.locks import AsyncReadWriteLock
from nailongwatch.util.logger import get_logger

logger = get_logger("whitelist")


class GroupWhitelist:
    """Map of group id to enabled flag; a missing entry means disabled."""

    def __init__(self, entries: Mapping[int, bool] | None = None) -> None:
        self._entries: Dict[int, bool] = dict(entries or {})
        self._lock = AsyncReadWriteLock()

    async def is_enabled(self, group_id: int) -> bool:
        async with self._lock.read():
            return self._entries.get(group_id, False)

    async def set_enabled(self, group_id: int, enabled: bool) -> None:
        async with self._lock.write():
            self._entries[group_id] = bool(enabled)
        logger.info("[WHITELIST] Auto moderation %s for group %s", "enabled" if enabled else "disabled", group_id)

    def snapshot(self) -> Dict[int, bool]:
        """Copy of the entries, for persistence."""
        return dict(self._entries)

    # -------- Persistence helpers --------
    @classmethod
    def load(cls, path: Path) -> "GroupWhitelist":
        raw = load_json_data({}, path)
        entries = {group_id: bool(flag) for group_id, flag in int_keyed(raw).items()}
        logger.info("[WHITELIST] Loaded %d whitelist entries from %s", len(entries), path)
        return cls(entries)

    def save(self, path: Path) -> None:
        save_json_data(str_keyed(self.snapshot()), path)
        logger.info("[WHITELIST] Saved %d whitelist entries to %s", len(self._entries), path)
