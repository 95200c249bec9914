"""
Data Models Package

This package contains all Pydantic models used in the FCD Tracker.
All data flowing through the system must conform to these schemas.
"""

from fcd_tracker.models.entry import (
    CanonicalEntry,
    DashboardSnapshot,
    DEFAULT_STATUS,
    Entry,
    EntryDraft,
    ExtractedFields,
    FCDStats,
    FlowKind,
    FlowStatus,
    ImageUpload,
    RatePoint,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    classify_status,
)
from fcd_tracker.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entry models
    "CanonicalEntry",
    "DashboardSnapshot",
    "DEFAULT_STATUS",
    "Entry",
    "EntryDraft",
    "ExtractedFields",
    "FCDStats",
    "FlowKind",
    "FlowStatus",
    "ImageUpload",
    "RatePoint",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "classify_status",
    # Audit models
    "AUDIT_COLUMNS",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
