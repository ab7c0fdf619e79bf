"""
Per-user offence history and the cooldown-based escalation decision.

There is no explicit state enum: whether a trigger escalates depends only on
how long ago the same user last triggered in the same group.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from nailongwatch.storage.json_store import int_keyed, load_json_data, save_json_data, str_keyed
from nailongwatch.errors import PersistenceFailure
from nailongwatch.util.logger import get_logger

logger = get_logger("moderation_records")


@dataclass(slots=True)
class ModerationRecord:
    """
    Offence counters for one user.

    Attributes:
        total_times (int): Triggers across every group. Always equals the sum of
            ``per_group_times``.
        per_group_times (Dict[int, int]): Triggers per group id.
        last_trigger_at (Dict[int, int]): Unix seconds of the last trigger per
            group id.
    """

    total_times: int = 0
    per_group_times: Dict[int, int] = field(default_factory=dict)
    last_trigger_at: Dict[int, int] = field(default_factory=dict)

    def register_trigger(self, group_id: int, timestamp: int) -> None:
        """Count one trigger in ``group_id`` and remember when it happened."""
        self.total_times += 1
        self.per_group_times[group_id] = self.per_group_times.get(group_id, 0) + 1
        self.last_trigger_at[group_id] = timestamp

    def group_times(self, group_id: int) -> int:
        return self.per_group_times.get(group_id, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_times": self.total_times,
            "group_total_times": str_keyed(self.per_group_times),
            "last_timestamp": str_keyed(self.last_trigger_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModerationRecord":
        if not isinstance(data, Mapping):
            raise PersistenceFailure(f"malformed moderation record: {data!r}")
        try:
            per_group = {gid: int(count) for gid, count in int_keyed(data.get("group_total_times", {})).items()}
            last_seen = {gid: int(ts) for gid, ts in int_keyed(data.get("last_timestamp", {})).items()}
        except (TypeError, ValueError) as exc:
            raise PersistenceFailure(f"malformed moderation record: {exc}") from exc
        # total_times is derived so a hand-edited file cannot break the invariant
        return cls(total_times=sum(per_group.values()), per_group_times=per_group, last_trigger_at=last_seen)


@dataclass(frozen=True, slots=True)
class TriggerOutcome:
    """Result of one trigger event, captured inside the critical section."""

    escalate: bool
    elapsed: int
    total_times: int
    group_times: int


class ModerationRecordStore:
    """
    In-memory table of :class:`ModerationRecord` keyed by user id.

    A single coarse ``asyncio.Lock`` guards the table. :meth:`record_trigger`
    performs lookup, cooldown check, counter update and timestamp update
    under that lock, so two concurrent triggers by the same user are
    serialised and the second always observes the first one's timestamp.
    """

    def __init__(self, records: Mapping[int, ModerationRecord] | None = None) -> None:
        self._records: Dict[int, ModerationRecord] = dict(records or {})
        self._lock = asyncio.Lock()

    async def record_trigger(self, user_id: int, group_id: int, now: int, cooldown: int) -> TriggerOutcome:
        """
        Register a qualifying detection and decide whether it escalates.

        Args:
            user_id: Offending user.
            group_id: Group the image was posted in.
            now: Current unix time in seconds.
            cooldown: Window in seconds; a repeat trigger inside it escalates.

        Returns:
            TriggerOutcome: Escalation decision and the updated counters.
        """
        async with self._lock:
            record = self._records.get(user_id)
            if record is None:
                record = self._records[user_id] = ModerationRecord()

            last = record.last_trigger_at.get(group_id, 0)
            # A clock that went backwards counts as an immediate repeat
            elapsed = max(now - last, 0)
            escalate = elapsed < cooldown

            record.register_trigger(group_id, now)
            outcome = TriggerOutcome(
                escalate=escalate,
                elapsed=elapsed,
                total_times=record.total_times,
                group_times=record.group_times(group_id),
            )

        logger.debug(
            "[RECORDS] user=%s group=%s elapsed=%ss escalate=%s total=%d",
            user_id,
            group_id,
            elapsed,
            escalate,
            outcome.total_times,
        )
        return outcome

    async def get(self, user_id: int) -> ModerationRecord | None:
        """Return a copy of the user's record, or ``None`` if they never triggered."""
        async with self._lock:
            record = self._records.get(user_id)
            if record is None:
                return None
            return ModerationRecord(
                total_times=record.total_times,
                per_group_times=dict(record.per_group_times),
                last_trigger_at=dict(record.last_trigger_at),
            )

    def snapshot(self) -> Dict[int, ModerationRecord]:
        return dict(self._records)

    # -------- Persistence helpers --------
    @classmethod
    def load(cls, path: Path) -> "ModerationRecordStore":
        raw = load_json_data({}, path)
        records = {user_id: ModerationRecord.from_dict(data) for user_id, data in int_keyed(raw).items()}
        logger.info("[RECORDS] Loaded %d moderation records from %s", len(records), path)
        return cls(records)

    def save(self, path: Path) -> None:
        payload = {str(user_id): record.to_dict() for user_id, record in self._records.items()}
        save_json_data(payload, path)
        logger.info("[RECORDS] Saved %d moderation records to %s", len(payload), path)
