"""Services package."""

from fcd_tracker.services.ocr import (
    ExtractionFailedError,
    OCRError,
    SlipRejectedError,
    TyphoonOCRService,
)
from fcd_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    ConstraintViolationError,
    EntryStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntryStorage,
    InMemoryAuditStorage,
    InMemoryEntryStorage,
    StorageError,
)

__all__ = [
    # OCR services
    "ExtractionFailedError",
    "OCRError",
    "SlipRejectedError",
    "TyphoonOCRService",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "ConstraintViolationError",
    "EntryStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEntryStorage",
    "InMemoryAuditStorage",
    "InMemoryEntryStorage",
    "StorageError",
]
