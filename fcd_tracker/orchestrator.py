"""
Main Orchestrator for FCD Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Entry (slip image → OCR → draft → user edits → validate → save)
2. Dashboard (fetch all entries → statistics → rate history)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is appended without passing EntryValidator
- Dashboard numbers are recomputed from storage on every load
- Every step is audited

State is explicit: drafts go in and come out of these methods,
nothing is kept between calls.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from fcd_tracker.audit import AuditLogger, create_correlation_id
from fcd_tracker.models.entry import (
    DashboardSnapshot,
    Entry,
    EntryDraft,
    ExtractedFields,
    FlowStatus,
    ImageUpload,
    TransactionType,
)
from fcd_tracker.services.ocr import (
    OCRError,
    SlipRejectedError,
    TyphoonOCRService,
    parse_extracted_date,
)
from fcd_tracker.services.storage import (
    EntryStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEntryStorage,
    InMemoryEntryStorage,
    StorageError,
)
from fcd_tracker.stats import compute_stats, rate_history
from fcd_tracker.validation import EntryValidator, ValidationRejected


logger = structlog.get_logger(__name__)

OCR_NOTE = "Auto-filled from Typhoon OCR"


def draft_from_extraction(
    fields: ExtractedFields,
    now: Optional[datetime] = None,
) -> EntryDraft:
    """
    Pre-fill an FX draft from OCR fields.

    Missing amounts become 0 so the user sees empty inputs; the
    validator still refuses the draft until they are filled in.
    """
    return EntryDraft(
        tx_type=TransactionType.FX,
        status=FlowStatus.IN.value,
        date=parse_extracted_date(fields.date, now=now),
        usd=fields.usd or Decimal("0"),
        thb=fields.thb or Decimal("0"),
        rate=fields.rate or Decimal("0"),
        note=OCR_NOTE,
    )


class EntryFlow:
    """
    Orchestrates adding an entry.

    Flow:
    1. Upload → ImageUpload record, size/type check
    2. Extract → Typhoon OCR, slip fields
    3. Draft → FX draft pre-filled from the fields (user edits it)
    4. Validate → EntryValidator
    5. Save → append to storage

    Manual entries start at step 3 with a blank draft.
    """

    def __init__(
        self,
        ocr_service: Optional[TyphoonOCRService] = None,
        validator: Optional[EntryValidator] = None,
        entry_storage: Optional[EntryStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        # OCR is created on first use so manual entry works without an API key
        self._ocr_service = ocr_service
        self._validator = validator or EntryValidator()
        self._entry_storage = entry_storage
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def ocr_service(self) -> TyphoonOCRService:
        if self._ocr_service is None:
            self._ocr_service = TyphoonOCRService()
        return self._ocr_service

    async def extract_slip(
        self,
        image_bytes: bytes,
        filename: str,
        mime_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExtractedFields:
        """
        Run OCR on a slip image.

        Returns:
            The extracted fields; some may be missing

        Raises:
            SlipRejectedError: If the upload is not an acceptable image
            OCRError: If nothing usable could be extracted
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            upload = ImageUpload(
                original_filename=filename,
                file_size_bytes=len(image_bytes),
                mime_type=mime_type,
            )
        except ValidationError as e:
            await self._audit_logger.log_ocr_failed(str(e), correlation_id)
            raise SlipRejectedError(e.errors()[0]["msg"])

        await self._audit_logger.log_slip_uploaded(
            upload_id=upload.upload_id,
            filename=filename,
            file_size=upload.file_size_bytes,
            correlation_id=correlation_id,
        )

        try:
            fields = await self.ocr_service.extract_fields(image_bytes, upload)
        except OCRError as e:
            await self._audit_logger.log_ocr_failed(str(e), correlation_id)
            raise
        except Exception as e:
            await self._audit_logger.log_external_service_error(
                service="typhoon",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_ocr_completed(
            extraction_id=fields.extraction_id,
            missing_fields=fields.missing_fields,
            correlation_id=correlation_id,
        )
        return fields

    def new_draft(self, now: Optional[datetime] = None) -> EntryDraft:
        """Blank FX draft dated now, as the entry form starts."""
        return draft_from_extraction(ExtractedFields(), now=now).model_copy(
            update={"note": None}
        )

    async def submit_entry(
        self,
        draft: EntryDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Entry:
        """
        Validate a draft and append it to storage.

        Returns:
            The stored Entry

        Raises:
            ValidationRejected: If the draft breaks a rule (nothing is saved)
            StorageError: If storage is missing or the append fails
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            canonical = self._validator.validate(draft)
        except ValidationRejected as e:
            await self._audit_logger.log_validation_failed(
                tx_type=draft.tx_type.value,
                field=e.field,
                reason=e.reason,
                correlation_id=correlation_id,
            )
            raise

        if self._entry_storage is None:
            raise StorageError("Entry storage is not configured")

        try:
            entry = await self._entry_storage.append_entry(canonical)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                tx_type=canonical.tx_type.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_entry_saved(entry, correlation_id)
        return entry


class DashboardFlow:
    """
    Builds the dashboard from the current contents of storage.

    No aggregates are cached; every load fetches and recomputes.
    """

    def __init__(
        self,
        entry_storage: EntryStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._entry_storage = entry_storage
        self._audit_logger = audit_logger or AuditLogger()

    async def load(self, correlation_id: Optional[UUID] = None) -> DashboardSnapshot:
        """
        Fetch every entry and derive the dashboard numbers.

        Raises:
            StorageError: If entries cannot be fetched
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            entries = await self._entry_storage.fetch_entries()
        except StorageError as e:
            await self._audit_logger.log_fetch_failed(str(e), correlation_id)
            raise

        await self._audit_logger.log_entries_fetched(len(entries), correlation_id)

        return DashboardSnapshot(
            entries=sorted(entries, key=lambda e: (e.date, e.id), reverse=True),
            stats=compute_stats(entries),
            rate_history=rate_history(entries),
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[EntryFlow, DashboardFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.

    Returns:
        (entry_flow, dashboard_flow, sheets_client)
    """
    sheets_client = None
    entry_storage: EntryStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            entry_storage = GoogleSheetsEntryStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            entry_storage = InMemoryEntryStorage()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        entry_storage = InMemoryEntryStorage()
        audit_logger = AuditLogger()  # Local-only logging

    entry_flow = EntryFlow(
        entry_storage=entry_storage,
        audit_logger=audit_logger,
    )
    dashboard_flow = DashboardFlow(
        entry_storage=entry_storage,
        audit_logger=audit_logger,
    )

    return entry_flow, dashboard_flow, sheets_client
