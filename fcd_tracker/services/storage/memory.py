"""
In-Memory Storage

Same contract and constraints as the Google Sheets backend, kept in a
Python list. Used by the test-suite and for running without credentials.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from fcd_tracker.models.audit import AuditEvent
from fcd_tracker.models.entry import CanonicalEntry, Entry
from fcd_tracker.services.storage.interface import (
    AuditStorageInterface,
    EntryStorageInterface,
    check_row_constraints,
)


class InMemoryEntryStorage(EntryStorageInterface):
    """Entry storage backed by a list; ids start at 1."""

    def __init__(self, entries: Optional[Iterable[Entry]] = None):
        self._entries: list[Entry] = list(entries or [])

    async def fetch_entries(self) -> list[Entry]:
        # Entries are frozen, a shallow copy of the list is a snapshot
        return list(self._entries)

    async def append_entry(self, entry: CanonicalEntry) -> Entry:
        check_row_constraints(entry)
        next_id = max((e.id for e in self._entries), default=0) + 1
        stored = Entry.from_canonical(
            entry,
            entry_id=next_id,
            created_at=datetime.now(timezone.utc),
        )
        self._entries.append(stored)
        return stored


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit storage backed by a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
