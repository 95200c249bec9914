"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

Entries are append-only: the interface deliberately has no update
or delete. The core needs exactly two operations, "list all entries"
and "append one entry".
"""

from abc import ABC, abstractmethod
from uuid import UUID

from fcd_tracker.models.audit import AuditEvent
from fcd_tracker.models.entry import (
    CanonicalEntry,
    Entry,
    FlowKind,
    TransactionType,
    classify_status,
)


class EntryStorageInterface(ABC):
    """
    Abstract interface for FCD entry storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def fetch_entries(self) -> list[Entry]:
        """
        Fetch every stored entry.

        Returns:
            All entries, in no guaranteed order

        Raises:
            StorageError: On connectivity or authentication failure
        """
        pass

    @abstractmethod
    async def append_entry(self, entry: CanonicalEntry) -> Entry:
        """
        Append a validated entry.

        Args:
            entry: The canonical entry produced by EntryValidator

        Returns:
            The stored Entry with its assigned id and created_at

        Raises:
            ConstraintViolationError: If the row breaks a storage constraint
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one slip upload flow).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConstraintViolationError(StorageError):
    """A row was refused because it breaks a storage constraint."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


def check_row_constraints(entry: CanonicalEntry) -> None:
    """
    Enforce the row constraints every backend applies on insert.

    These mirror the validator's rules so a backend refuses a
    malformed row even when the caller skipped validation.

    Raises:
        ConstraintViolationError: If the row is malformed
    """
    if entry.usd <= 0:
        raise ConstraintViolationError("usd must be positive")

    if entry.tx_type == TransactionType.FX:
        if entry.thb is None or entry.thb <= 0 or entry.rate is None or entry.rate <= 0:
            raise ConstraintViolationError("FX rows require positive thb and rate")
    elif entry.thb is not None or entry.rate is not None:
        raise ConstraintViolationError(
            f"{entry.tx_type.value} rows must have null thb and rate"
        )

    if classify_status(entry.status) == FlowKind.UNCLASSIFIED:
        raise ConstraintViolationError("status must be IN, OUT or Interest")

    if (
        entry.tx_type == TransactionType.INTEREST
        and classify_status(entry.status) != FlowKind.INTEREST_INFLOW
    ):
        raise ConstraintViolationError("INTEREST rows must have status Interest")

    if entry.date.utcoffset() is None:
        raise ConstraintViolationError("date must carry a UTC offset")
