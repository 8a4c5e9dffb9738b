"""
Ledger Store
============

Persists the full ledger as an ordered JSON list under a fixed key inside a
JSON blob file. Other keys in the blob are preserved on save.

A missing file or corrupt content loads as an empty ledger.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from station.models import DEFAULT_STORAGE_KEY

from .entries import ENTRY_LIST, DispatchEntry


logger = logging.getLogger(__name__)


class LedgerStore:
    def __init__(self, path: str, key: str = DEFAULT_STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    def _read_blob(self) -> Dict[str, Any]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("storage blob is not a JSON object")
        return data

    def load(self) -> List[DispatchEntry]:
        """Load entries, newest first. Never raises on bad data."""
        if not self.path.exists():
            return []
        try:
            payload = self._read_blob().get(self.key, [])
            if not isinstance(payload, list):
                raise ValueError(f"{self.key} is not a list")
            entries = ENTRY_LIST.validate_python(payload)
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("Dispatch history at %s is corrupted, starting empty: %s", self.path, e)
            return []
        logger.info("Loaded %d dispatch entries from %s", len(entries), self.path)
        return entries

    def save(self, entries: List[DispatchEntry]) -> Path:
        """Write the full ordered entry list."""
        blob: Dict[str, Any] = {}
        if self.path.exists():
            try:
                blob = self._read_blob()
            except (OSError, ValueError) as e:
                logger.warning("Overwriting unreadable storage blob %s: %s", self.path, e)
        blob[self.key] = [entry.to_record() for entry in entries]

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(blob, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.info("Saved %d dispatch entries to %s", len(entries), self.path)
        return self.path
