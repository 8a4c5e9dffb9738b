"""
Dispatch Center Controller
==========================

Wires the pieces an operator works with into one object:
- DispatchSession (pool + aggregates)
- DispatchLedger, persisted through a LedgerStore after every change
- SequenceLogBuffer, re-synced after every state change

Used by the Streamlit app and by runner.py.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from allocation.session import Action, DispatchSession, DispatchState
from ledger.entries import DispatchEntry
from ledger.ledger import DispatchLedger, Snapshot
from ledger.store import LedgerStore
from reporting.sequence_log import SequenceLogBuffer, render_sequence_log
from station.models import StationConfig


logger = logging.getLogger(__name__)


class DispatchCenter:
    """
    Operator-facing facade over session, ledger and sequence log.

    Args:
        config: Station configuration
        store: Ledger persistence; None keeps the ledger in memory only
        clock: Commit clock (defaults to UTC now)
    """

    def __init__(
        self,
        config: StationConfig,
        store: Optional[LedgerStore] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.config = config
        self.session = DispatchSession(config)
        self.store = store
        entries = store.load() if store is not None else []
        self.ledger = DispatchLedger(
            entries,
            tz=config.tz,
            clock=clock or (lambda: datetime.now(timezone.utc)),
        )
        # Set by commits made in this session only
        self.last_commit_time = ""
        self.sequence_log = SequenceLogBuffer(self.render_log())

    @property
    def state(self) -> DispatchState:
        return self.session.state

    def render_log(self) -> str:
        return render_sequence_log(
            self.session.units,
            self.session.total_p,
            self.session.total_q,
            self.last_commit_time,
        )

    def refresh_log(self) -> str:
        return self.sequence_log.sync(self.render_log())

    def apply(self, action: Action) -> DispatchState:
        state = self.session.apply(action)
        self.refresh_log()
        return state

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.ledger.entries)

    def commit(self) -> str:
        """Snapshot the pool into the ledger head and persist."""
        entry_id = self.ledger.commit(self.session.pool.snapshot())
        self.last_commit_time = self.ledger.get(entry_id).timestamp
        self._persist()
        self.refresh_log()
        return entry_id

    def update_entry(self, entry_id: str, snapshot: Snapshot) -> DispatchEntry:
        entry = self.ledger.update(entry_id, snapshot)
        self._persist()
        return entry

    def delete_entry(self, entry_id: str) -> DispatchEntry:
        """Irreversibly delete an entry. Callers must confirm with the operator first."""
        entry = self.ledger.delete(entry_id)
        self._persist()
        return entry
