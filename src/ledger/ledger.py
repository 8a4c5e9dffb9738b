"""
Dispatch Ledger
===============

Ordered log of committed pool snapshots, newest first.

- commit() prepends a new entry with a generated id and timestamp
- update() replaces an entry's snapshot in place; id, timestamp and
  position never change
- delete() removes an entry; there is no undo
- Entries are never evicted
"""

import logging
import uuid
from datetime import datetime, timezone, tzinfo
from typing import Callable, Iterator, List, Mapping, Optional

from .entries import DispatchEntry, snapshot_from_mapping


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

Snapshot = Mapping[str, Mapping[str, float]]


class EntryNotFoundError(KeyError):
    """Raised when a ledger entry id is unknown."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def format_timestamp(moment: datetime, tz: tzinfo = timezone.utc) -> str:
    """Format a commit time as YYYY-MM-DD HH:MM:SS in ``tz``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    return moment.astimezone(tz).strftime(TIMESTAMP_FORMAT)


class DispatchLedger:
    """
    Append-at-head, edit-in-place, delete-capable ledger.

    Args:
        entries: Existing entries, newest first
        tz: Timezone commit timestamps are rendered in
        clock: Returns the commit time
        id_factory: Returns a new unique entry id
    """

    def __init__(
        self,
        entries: Optional[List[DispatchEntry]] = None,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_id
    ):
        self._entries: List[DispatchEntry] = list(entries or [])
        self.tz = tz
        self._clock = clock
        self._id_factory = id_factory

    @property
    def entries(self) -> List[DispatchEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DispatchEntry]:
        return iter(list(self._entries))

    @property
    def head(self) -> Optional[DispatchEntry]:
        return self._entries[0] if self._entries else None

    @property
    def last_timestamp(self) -> str:
        """Timestamp of the newest entry, or empty string."""
        return self._entries[0].timestamp if self._entries else ""

    def _index(self, entry_id: str) -> int:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        raise EntryNotFoundError(entry_id)

    def get(self, entry_id: str) -> DispatchEntry:
        return self._entries[self._index(entry_id)]

    def commit(self, snapshot: Snapshot) -> str:
        """
        Prepend a snapshot of the pool.

        Args:
            snapshot: {unit_id: {active, reac, soc}}

        Returns:
            New entry id
        """
        entry = DispatchEntry(
            id=self._id_factory(),
            timestamp=format_timestamp(self._clock(), self.tz),
            units=snapshot_from_mapping(snapshot),
        )
        self._entries.insert(0, entry)
        logger.info("Committed dispatch entry %s at %s", entry.id, entry.timestamp)
        return entry.id

    def update(self, entry_id: str, snapshot: Snapshot) -> DispatchEntry:
        """Replace an entry's snapshot without moving it."""
        i = self._index(entry_id)
        updated = self._entries[i].model_copy(update={"units": snapshot_from_mapping(snapshot)})
        self._entries[i] = updated
        logger.info("Updated dispatch entry %s", entry_id)
        return updated

    def delete(self, entry_id: str) -> DispatchEntry:
        """Remove an entry permanently. Confirmation belongs to the caller."""
        removed = self._entries.pop(self._index(entry_id))
        logger.info("Deleted dispatch entry %s (%s)", entry_id, removed.timestamp)
        return removed
