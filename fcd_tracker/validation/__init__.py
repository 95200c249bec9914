"""Draft validation package."""

from fcd_tracker.validation.validator import (
    EntryValidator,
    ValidationRejected,
    to_offset_timestamp,
)

__all__ = ["EntryValidator", "ValidationRejected", "to_offset_timestamp"]
