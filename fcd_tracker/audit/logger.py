"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of how each entry got into storage
2. Debugging capability for OCR and validation problems
3. A history the account holder can inspect in the audit sheet

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from fcd_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from fcd_tracker.models.entry import Entry
from fcd_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_slip_uploaded(
        self,
        upload_id: UUID,
        filename: str,
        file_size: int,
        correlation_id: UUID,
    ) -> None:
        """Log slip upload event."""
        await self.log(AuditEventBuilder.slip_uploaded(
            upload_id=upload_id,
            filename=filename,
            file_size=file_size,
            correlation_id=correlation_id,
        ))

    async def log_ocr_completed(
        self,
        extraction_id: UUID,
        missing_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log OCR completion."""
        await self.log(AuditEventBuilder.ocr_completed(
            extraction_id=extraction_id,
            missing_fields=missing_fields,
            correlation_id=correlation_id,
        ))

    async def log_ocr_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a slip that yielded nothing usable."""
        await self.log(AuditEventBuilder.ocr_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        tx_type: str,
        field: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Log a rejected draft."""
        await self.log(AuditEventBuilder.validation_failed(
            tx_type=tx_type,
            field=field,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_entry_saved(
        self,
        entry: Entry,
        correlation_id: UUID,
    ) -> None:
        """Log entry save."""
        await self.log(AuditEventBuilder.entry_saved(
            entry_id=entry.id,
            tx_type=entry.tx_type.value,
            status=entry.status,
            usd=str(entry.usd),
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        tx_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed append."""
        await self.log(AuditEventBuilder.save_failed(
            tx_type=tx_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_entries_fetched(
        self,
        count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.entries_fetched(
            count=count,
            correlation_id=correlation_id,
        ))

    async def log_fetch_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.fetch_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., slip upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
