"""
Tests for FCD Tracker models

Test strategy:
1. Unit tests for individual components (models, validator, engine)
2. Integration tests for flows (with in-memory / mocked services)
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from fcd_tracker.models.entry import (
    CanonicalEntry,
    Entry,
    EntryDraft,
    ExtractedFields,
    FCDStats,
    FlowKind,
    ImageUpload,
    TransactionType,
    classify_status,
)
from fcd_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

from tests.conftest import BKK


class TestFlowClassification:
    """Tests for mapping raw status labels to FlowKind."""

    def test_known_statuses(self):
        assert classify_status("IN") == FlowKind.INFLOW
        assert classify_status("OUT") == FlowKind.OUTFLOW
        assert classify_status("Interest") == FlowKind.INTEREST_INFLOW

    def test_surrounding_whitespace_is_ignored(self):
        assert classify_status("  OUT ") == FlowKind.OUTFLOW

    def test_matching_is_case_sensitive(self):
        assert classify_status("interest") == FlowKind.UNCLASSIFIED
        assert classify_status("in") == FlowKind.UNCLASSIFIED

    def test_unknown_and_missing_are_unclassified(self):
        assert classify_status("PENDING") == FlowKind.UNCLASSIFIED
        assert classify_status(None) == FlowKind.UNCLASSIFIED

    def test_interest_counts_as_inflow(self):
        assert FlowKind.INTEREST_INFLOW.is_inflow
        assert not FlowKind.UNCLASSIFIED.is_inflow


class TestEntryDraft:
    """Tests for switching a draft between transaction types."""

    def _fx_draft(self) -> EntryDraft:
        return EntryDraft(
            date="2026-02-03T15:30",
            usd=Decimal("100"),
            thb=Decimal("3550"),
            rate=Decimal("35.5"),
        )

    def test_gold_buy_defaults_to_out_and_clears_fx_fields(self):
        draft = self._fx_draft().switch_tx_type(TransactionType.GOLD_BUY)
        assert draft.status == "OUT"
        assert draft.thb is None
        assert draft.rate is None
        assert draft.usd == Decimal("100")

    def test_interest_defaults_to_interest_status(self):
        draft = self._fx_draft().switch_tx_type(TransactionType.INTEREST)
        assert draft.status == "Interest"

    def test_transfer_keeps_explicit_out(self):
        draft = self._fx_draft().switch_tx_type(TransactionType.GOLD_BUY)
        draft = draft.switch_tx_type(TransactionType.TRANSFER)
        assert draft.status == "OUT"

    def test_transfer_replaces_interest_status_with_in(self):
        draft = self._fx_draft().switch_tx_type(TransactionType.INTEREST)
        draft = draft.switch_tx_type(TransactionType.TRANSFER)
        assert draft.status == "IN"

    def test_switching_to_fx_zero_fills_missing_fields(self):
        draft = self._fx_draft().switch_tx_type(TransactionType.GOLD_SELL)
        draft = draft.switch_tx_type(TransactionType.FX)
        assert draft.status == "IN"
        assert draft.thb == Decimal("0")
        assert draft.rate == Decimal("0")

    def test_switch_returns_a_new_draft(self):
        original = self._fx_draft()
        original.switch_tx_type(TransactionType.GOLD_BUY)
        assert original.tx_type == TransactionType.FX
        assert original.thb == Decimal("3550")


class TestEntryModels:
    """Tests for canonical and persisted entries."""

    def test_canonical_fx_entry(self):
        entry = CanonicalEntry(
            tx_type=TransactionType.FX,
            status="IN",
            date=datetime(2026, 2, 3, 15, 30, tzinfo=BKK),
            usd=Decimal("100"),
            thb=Decimal("3550"),
            rate=Decimal("35.5"),
        )
        assert entry.date_iso == "2026-02-03T15:30:00+07:00"
        assert entry.flow == FlowKind.INFLOW

    def test_canonical_fx_requires_rate(self):
        with pytest.raises(ValueError, match="positive rate"):
            CanonicalEntry(
                tx_type=TransactionType.FX,
                status="IN",
                date=datetime(2026, 2, 3, tzinfo=BKK),
                usd=Decimal("100"),
                thb=Decimal("3550"),
            )

    def test_canonical_non_fx_rejects_thb(self):
        with pytest.raises(ValueError, match="must be empty"):
            CanonicalEntry(
                tx_type=TransactionType.GOLD_BUY,
                status="OUT",
                date=datetime(2026, 2, 3, tzinfo=BKK),
                usd=Decimal("100"),
                thb=Decimal("1"),
            )

    def test_canonical_interest_requires_interest_status(self):
        with pytest.raises(ValueError, match="status Interest"):
            CanonicalEntry(
                tx_type=TransactionType.INTEREST,
                status="IN",
                date=datetime(2026, 2, 3, tzinfo=BKK),
                usd=Decimal("50"),
            )

    def test_canonical_rejects_unknown_status(self):
        with pytest.raises(ValueError, match="IN, OUT or Interest"):
            CanonicalEntry(
                tx_type=TransactionType.TRANSFER,
                status="",
                date=datetime(2026, 2, 3, tzinfo=BKK),
                usd=Decimal("50"),
            )

    def test_persisted_entry_may_have_blank_status(self, make_entry):
        entry = make_entry(tx_type=TransactionType.TRANSFER, status="")
        assert entry.flow == FlowKind.UNCLASSIFIED

    def test_naive_timestamp_is_rejected(self):
        with pytest.raises(ValueError, match="UTC offset"):
            CanonicalEntry(
                tx_type=TransactionType.TRANSFER,
                status="IN",
                date=datetime(2026, 2, 3, 15, 30),
                usd=Decimal("100"),
            )

    def test_entries_are_immutable(self, make_entry):
        entry = make_entry()
        with pytest.raises(ValueError):
            entry.usd = Decimal("1")

    def test_from_canonical_assigns_id(self):
        canonical = CanonicalEntry(
            tx_type=TransactionType.INTEREST,
            status="Interest",
            date=datetime(2026, 2, 3, tzinfo=BKK),
            usd=Decimal("4.20"),
        )
        created = datetime(2026, 2, 4, tzinfo=timezone.utc)
        entry = Entry.from_canonical(canonical, entry_id=7, created_at=created)
        assert entry.id == 7
        assert entry.created_at == created
        assert entry.usd == Decimal("4.20")


class TestSupportingModels:
    """Tests for upload, extraction and stats models."""

    def test_image_upload_rejects_pdf(self):
        with pytest.raises(ValueError, match="Unsupported image type"):
            ImageUpload(
                original_filename="slip.pdf",
                file_size_bytes=100,
                mime_type="application/pdf",
            )

    def test_image_upload_normalizes_mime_type(self):
        upload = ImageUpload(
            original_filename="slip.jpg",
            file_size_bytes=100,
            mime_type="IMAGE/JPEG",
        )
        assert upload.mime_type == "image/jpeg"

    def test_extracted_fields_date_alone_is_not_usable(self):
        fields = ExtractedFields(date="3 February 2026")
        assert not fields.has_amounts
        assert fields.missing_fields == ["thb", "usd", "rate"]

    def test_total_usd_aliases_cash_remain(self):
        stats = FCDStats(cash_remain=Decimal("12.5"))
        assert stats.total_usd == Decimal("12.5")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.SLIP_UPLOADED,
            description="Test slip uploaded",
        )
        assert event.event_type == AuditEventType.SLIP_UPLOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.entry_saved(
            entry_id=3,
            tx_type="FX",
            status="IN",
            usd="100",
            correlation_id=uuid4(),
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "entry_saved"
        assert log_dict["entity_id"] == "3"
        assert log_dict["details"]["usd"] == "100"

    def test_audit_event_sheets_row(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.validation_failed(
            tx_type="FX",
            field="thb",
            reason="For FX, Rate and THB are required",
            correlation_id=correlation_id,
        )
        row = event.to_sheets_row()
        assert len(row) == 11
        assert row[2] == "validation_failed"
        assert row[10] == "True"

        restored = AuditEvent.from_sheets_row(row)
        assert restored.event_id == event.event_id
        assert restored.correlation_id == correlation_id
        assert restored.details == {"tx_type": "FX", "field": "thb"}
        assert restored.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
