"""Append-only audit trail with hash chaining."""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timezone
from hashlib import sha256
from typing import Callable, List, Optional

from . import schemas
from .storage import KeyedStore

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 6


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def audit_key(timestamp: datetime, sequence: int) -> str:
    return f"{timestamp.isoformat()}#{sequence:0{SEQUENCE_WIDTH}d}"


def _sequence_of(key: str) -> int:
    _, _, suffix = key.rpartition("#")
    return int(suffix) if suffix.isdigit() else 0


def chain_hash(key: str, actor: str, action: str, previous_hash: str) -> str:
    return sha256(f"{key}|{actor}|{action}|{previous_hash}".encode("utf-8")).hexdigest()


class AuditLog:
    """Records ``(timestamp, actor, action)`` triples into a keyed store.

    Keys combine the timestamp with a monotonic sequence number, so two
    entries written in the same instant never overwrite each other. The
    sequence resumes from the highest stored value after a restart.
    """

    def __init__(
        self,
        store: KeyedStore[schemas.AuditEntry],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.clock = clock
        self._lock = threading.Lock()
        keys = sorted(store.keys(), key=_sequence_of)
        start = _sequence_of(keys[-1]) + 1 if keys else 1
        self._sequence = itertools.count(start)
        last = store.get(keys[-1]) if keys else None
        self._last_hash = last.entry_hash if last else ""

    def record(self, actor: str, action: str) -> Optional[schemas.AuditEntry]:
        """Append an entry. Store failures are logged, never raised."""
        try:
            with self._lock:
                timestamp = self.clock()
                key = audit_key(timestamp, next(self._sequence))
                entry = schemas.AuditEntry(
                    key=key,
                    timestamp=timestamp,
                    actor=actor,
                    action=action,
                    message=f"{actor} - {action}",
                    entry_hash=chain_hash(key, actor, action, self._last_hash),
                )
                self.store.insert(key, entry)
                self._last_hash = entry.entry_hash
        except Exception:
            logger.exception("Failed to write audit entry for %s: %s", actor, action)
            return None
        logger.info("AUDIT %s %s %s", key, actor, action)
        return entry

    def entries(self) -> List[schemas.AuditEntry]:
        found = sorted(self.store.items(), key=lambda item: _sequence_of(item[0]))
        return [entry for _, entry in found if entry is not None]

    def __len__(self) -> int:
        return len(self.store.keys())

    def verify_chain(self) -> bool:
        previous_hash = ""
        for entry in self.entries():
            expected = chain_hash(entry.key, entry.actor, entry.action, previous_hash)
            if entry.entry_hash != expected:
                return False
            previous_hash = entry.entry_hash
        return True
