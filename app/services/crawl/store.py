from __future__ import annotations

import csv
import logging
import os
import threading
from typing import List, Set

from .base import CSV_HEADER, InstitutionRecord


logger = logging.getLogger(__name__)


class RecordStore:
    """Append-only CSV catalog of institution records.

    Contract:
    - ensure_initialized(): create the file with the header row when missing
    - exists(id) / read_all(): scan persisted rows (the file is small)
    - append(record): write one row; uniqueness is the caller's job (check exists first)
    - rows that do not have exactly 6 fields are ignored
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.RLock()

    def ensure_initialized(self) -> None:
        with self._lock:
            if os.path.isfile(self.path):
                return
            parent = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(parent, exist_ok=True)
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(CSV_HEADER)
            logger.info("Created new catalog file at %s", self.path)

    def _rows(self) -> List[List[str]]:
        if not os.path.isfile(self.path):
            return []
        with open(self.path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        # First row is the header
        return rows[1:]

    def exists(self, institution_id: str) -> bool:
        with self._lock:
            return any(len(row) == len(CSV_HEADER) and row[0] == institution_id for row in self._rows())

    def read_all(self) -> List[InstitutionRecord]:
        with self._lock:
            rows = self._rows()
        records: List[InstitutionRecord] = []
        seen: Set[str] = set()
        for lineno, row in enumerate(rows, start=2):
            if len(row) != len(CSV_HEADER):
                if row:
                    logger.debug("Skipping malformed row %d in %s (%d fields)", lineno, self.path, len(row))
                continue
            rec = InstitutionRecord.from_row(row)
            if rec.id in seen:
                logger.warning("Duplicate id %s at row %d in %s ignored", rec.id, lineno, self.path)
                continue
            seen.add(rec.id)
            records.append(rec)
        return records

    def append(self, record: InstitutionRecord) -> None:
        with self._lock:
            self.ensure_initialized()
            with open(self.path, "a", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(record.to_row())
