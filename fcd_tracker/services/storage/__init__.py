"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the production backend; the in-memory backend serves
tests and credential-less runs.
"""

from fcd_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    ConstraintViolationError,
    EntryStorageInterface,
    StorageError,
    check_row_constraints,
)
from fcd_tracker.services.storage.google_sheets import (
    ENTRY_COLUMNS,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntryStorage,
)
from fcd_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryEntryStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "EntryStorageInterface",
    "check_row_constraints",
    # Exceptions
    "ConnectionError",
    "ConstraintViolationError",
    "StorageError",
    # Google Sheets implementation
    "ENTRY_COLUMNS",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEntryStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryEntryStorage",
]
