"""
Change history store.

The history is one JSON document
``{lastHash, lastAnalysis, changes: [record, ...]}`` read and written whole.
Only the most recent ``max_records`` records are kept (oldest evicted first).

There is no locking: promptdiff runs as a single-shot CLI, one writer at a time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .errors import StateCorruptedError
from .models import Change, ChangeHistory, ChangeHistoryRecord
from .utils import read_json_document, utc_now_iso, write_json_document

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 10


class HistoryStore(ABC):
    """Owns the change history; business logic only sees read/write/append."""

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS):
        if max_records < 1:
            raise ValueError("max_records must be >= 1")
        self.max_records = max_records

    @abstractmethod
    def read(self) -> ChangeHistory:
        """Return the stored history, or an empty one if nothing was stored yet."""

    @abstractmethod
    def write(self, history: ChangeHistory) -> None:
        """Replace the stored history."""

    def last_hash(self) -> str:
        return self.read().last_hash

    def append(
        self,
        content_hash: str,
        changes: List[Change],
        timestamp: Optional[str] = None,
    ) -> ChangeHistoryRecord:
        """Record one change event and move lastHash to it."""
        history = self.read()
        record = ChangeHistoryRecord(
            timestamp=timestamp or utc_now_iso(),
            hash=content_hash,
            changes=changes,
            processed=False,
        )
        records = (history.changes + [record])[-self.max_records:]
        self.write(
            ChangeHistory(
                last_hash=content_hash,
                last_analysis=record.timestamp,
                changes=records,
            )
        )
        return record


class JsonHistoryStore(HistoryStore):
    """History persisted as a JSON file (change-history.json)."""

    def __init__(self, path: str | Path, max_records: int = DEFAULT_MAX_RECORDS):
        super().__init__(max_records)
        self.path = Path(path)

    def read(self) -> ChangeHistory:
        data = read_json_document(self.path)
        if data is None:
            return ChangeHistory()
        try:
            return ChangeHistory.model_validate(data)
        except ValidationError as e:
            raise StateCorruptedError(f"Change history {self.path} is not valid: {e}") from e

    def write(self, history: ChangeHistory) -> None:
        write_json_document(self.path, history.to_json_dict())
        logger.info(f"Saved change history {self.path}: {len(history.changes)} records")


class InMemoryHistoryStore(HistoryStore):
    """Keeps the history in memory (tests, embedding)."""

    def __init__(self, history: Optional[ChangeHistory] = None, max_records: int = DEFAULT_MAX_RECORDS):
        super().__init__(max_records)
        self._history = history or ChangeHistory()

    def read(self) -> ChangeHistory:
        return self._history.model_copy(deep=True)

    def write(self, history: ChangeHistory) -> None:
        self._history = history.model_copy(deep=True)
