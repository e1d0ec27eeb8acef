from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Set, Tuple


class Phase(str, Enum):
    IDLE = "idle"
    SELECTING_OUTPUT_FORMAT = "selecting_output_format"
    SELECTING_DISTRICTS = "selecting_districts"
    AWAITING_SPREADSHEET = "awaiting_spreadsheet"
    AWAITING_PDF = "awaiting_pdf"


@dataclass
class PendingSettings:
    output_is_spreadsheet: bool = False
    selected_districts: Set[str] = field(default_factory=set)  # district codes


@dataclass
class Session:
    phase: Phase = Phase.IDLE
    pending: PendingSettings = field(default_factory=PendingSettings)

    def reset(self) -> None:
        self.phase = Phase.IDLE
        self.pending = PendingSettings()


class SessionStore:
    """Chat identity -> Session, with one lock per identity.

    Callers must hold ``locked(identity)`` while reading or mutating a session.
    """

    def __init__(self) -> None:
        self._sessions: Dict[int, Session] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, identity: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(identity)
            if lock is None:
                lock = self._locks[identity] = threading.Lock()
            return lock

    @contextmanager
    def locked(self, identity: int) -> Iterator[Tuple[Session, bool]]:
        """Yield (session, created) with the identity's lock held."""
        with self._lock_for(identity):
            with self._guard:
                session = self._sessions.get(identity)
                created = session is None
                if created:
                    session = self._sessions[identity] = Session()
            yield session, created

    def peek(self, identity: int) -> Session:
        """Unlocked read, for tests and diagnostics."""
        with self._guard:
            return self._sessions[identity]

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)
