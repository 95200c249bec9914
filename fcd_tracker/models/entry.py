"""
Core Data Models for FCD Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the FX / non-FX field invariants at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Keep persisted entries immutable

DESIGN DECISION: Money is always Decimal. Floats never enter the core,
so aggregates are exact and do not depend on summation order.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


ZERO = Decimal("0")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Kinds of FCD transactions."""
    FX = "FX"
    GOLD_BUY = "GOLD_BUY"
    GOLD_SELL = "GOLD_SELL"
    INTEREST = "INTEREST"
    TRANSFER = "TRANSFER"


class FlowStatus(str, Enum):
    """
    Status labels with meaning for the statistics engine.

    The stored status is free text; these are the only values
    that count as inflow or outflow.
    """
    IN = "IN"
    OUT = "OUT"
    INTEREST = "Interest"


class FlowKind(str, Enum):
    """
    Classified direction of an entry, derived from its raw status.

    DESIGN DECISION: The raw status string is mapped once, here.
    Nothing else in the system compares status strings.
    """
    INFLOW = "inflow"
    OUTFLOW = "outflow"
    INTEREST_INFLOW = "interest_inflow"
    UNCLASSIFIED = "unclassified"

    @property
    def is_inflow(self) -> bool:
        return self in (FlowKind.INFLOW, FlowKind.INTEREST_INFLOW)


_STATUS_KINDS = {
    FlowStatus.IN.value: FlowKind.INFLOW,
    FlowStatus.OUT.value: FlowKind.OUTFLOW,
    FlowStatus.INTEREST.value: FlowKind.INTEREST_INFLOW,
}


def classify_status(status: Optional[str]) -> FlowKind:
    """
    Map a raw status label to its FlowKind.

    Matching is case-sensitive after trimming whitespace; anything
    unknown (including None) is UNCLASSIFIED.
    """
    if status is None:
        return FlowKind.UNCLASSIFIED
    return _STATUS_KINDS.get(status.strip(), FlowKind.UNCLASSIFIED)


# Default status applied when the user switches a draft to a transaction type
DEFAULT_STATUS = {
    TransactionType.FX: FlowStatus.IN,
    TransactionType.GOLD_BUY: FlowStatus.OUT,
    TransactionType.GOLD_SELL: FlowStatus.IN,
    TransactionType.INTEREST: FlowStatus.INTEREST,
    TransactionType.TRANSFER: FlowStatus.IN,
}


def _require_offset(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("Timestamp must carry an explicit UTC offset")
    return value


# =============================================================================
# ENTRY MODELS
# =============================================================================

class EntryDraft(BaseModel):
    """
    An entry being composed by the user (manually or from OCR).

    Drafts are mutable and unchecked. Only EntryValidator turns
    a draft into something storage will accept.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    tx_type: TransactionType = TransactionType.FX
    status: str = FlowStatus.IN.value
    # Naive local datetime, aware datetime, or the raw form string
    date: Union[datetime, str]
    usd: Decimal = ZERO
    thb: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    note: Optional[str] = None

    def switch_tx_type(self, tx_type: TransactionType) -> "EntryDraft":
        """
        Return a copy of this draft moved to another transaction type.

        Applies the type's default status and resets the FX-only
        fields. A transfer keeps an explicit IN/OUT status.
        """
        status = DEFAULT_STATUS[tx_type].value
        thb, rate = None, None

        if tx_type == TransactionType.FX:
            thb = self.thb if self.thb is not None else ZERO
            rate = self.rate if self.rate is not None else ZERO
        elif tx_type == TransactionType.TRANSFER:
            if classify_status(self.status) in (FlowKind.INFLOW, FlowKind.OUTFLOW):
                status = self.status

        return self.model_copy(update={
            "tx_type": tx_type,
            "status": status,
            "thb": thb,
            "rate": rate,
        })


class _EntryBody(BaseModel):
    """Fields shared by canonical and persisted entries."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    tx_type: TransactionType
    # Free text; a blank or unknown label classifies as UNCLASSIFIED
    status: str = Field(..., max_length=50)
    date: datetime = Field(
        ...,
        description="Transaction time with explicit UTC offset"
    )
    usd: Decimal = Field(
        ...,
        description="USD amount, direction implied by status"
    )
    thb: Optional[Decimal] = Field(
        default=None,
        description="THB amount (FX only)"
    )
    rate: Optional[Decimal] = Field(
        default=None,
        description="THB per USD (FX only)"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @field_validator('date')
    @classmethod
    def validate_offset(cls, v: datetime) -> datetime:
        return _require_offset(v)

    @property
    def flow(self) -> FlowKind:
        return classify_status(self.status)

    @property
    def date_iso(self) -> str:
        """Timestamp in ISO 8601 with numeric offset, e.g. 2026-02-03T15:30:00+07:00."""
        return self.date.isoformat(timespec="seconds")


class CanonicalEntry(_EntryBody):
    """
    A validated entry, ready to be appended to storage.

    CRITICAL: Only EntryValidator should build these. The model
    re-checks the FX invariant so a hand-built instance cannot
    smuggle inconsistent rows into storage.
    """

    @model_validator(mode='after')
    def validate_fx_fields(self) -> 'CanonicalEntry':
        if self.usd <= 0:
            raise ValueError("USD amount must be greater than zero")

        if self.tx_type == TransactionType.FX:
            if self.thb is None or self.thb <= 0:
                raise ValueError("FX entries require a positive THB amount")
            if self.rate is None or self.rate <= 0:
                raise ValueError("FX entries require a positive rate")
        elif self.thb is not None or self.rate is not None:
            raise ValueError(
                f"THB and rate must be empty for {self.tx_type.value} entries"
            )

        if self.flow == FlowKind.UNCLASSIFIED:
            raise ValueError("Status must be IN, OUT or Interest")

        if (
            self.tx_type == TransactionType.INTEREST
            and self.flow != FlowKind.INTEREST_INFLOW
        ):
            raise ValueError("INTEREST entries must have status Interest")

        return self


class Entry(_EntryBody):
    """
    A persisted entry.

    Storage assigns id and created_at. Entries are never edited;
    the statistics engine reads them as-is.
    """

    id: int = Field(..., ge=1, description="Storage-assigned identifier")
    created_at: Optional[datetime] = None

    @classmethod
    def from_canonical(
        cls,
        entry: CanonicalEntry,
        entry_id: int,
        created_at: Optional[datetime] = None,
    ) -> "Entry":
        return cls(
            id=entry_id,
            created_at=created_at or datetime.now(timezone.utc),
            **entry.model_dump(),
        )


# =============================================================================
# OCR / IMAGE MODELS
# =============================================================================

class ImageUpload(BaseModel):
    """Represents an uploaded slip image before OCR."""

    upload_id: UUID = Field(
        default_factory=uuid4,
        description="Unique upload identifier"
    )
    uploaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    original_filename: str
    file_size_bytes: int = Field(ge=0)
    mime_type: str

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow image types."""
        allowed = {'image/jpeg', 'image/png', 'image/webp'}
        if v.lower() not in allowed:
            raise ValueError(f"Unsupported image type: {v}. Allowed: {allowed}")
        return v.lower()


class ExtractedFields(BaseModel):
    """
    Fields read off a transfer slip by OCR.

    CRITICAL: This is PROPOSED data, NOT verified.
    Every field is best-effort and may be missing. A draft built
    from these gets exactly the same validation as a manual one.
    """

    extraction_id: UUID = Field(default_factory=uuid4)
    extracted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    thb: Optional[Decimal] = None
    usd: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    date: Optional[str] = Field(
        default=None,
        description="Date text as printed on the slip"
    )

    raw_text: Optional[str] = Field(
        default=None,
        description="Raw OCR text for debugging"
    )

    @property
    def has_amounts(self) -> bool:
        """True when at least one numeric field was found."""
        return any(v is not None for v in (self.thb, self.usd, self.rate))

    @property
    def missing_fields(self) -> list[str]:
        return [
            name for name in ("thb", "usd", "rate", "date")
            if getattr(self, name) is None
        ]


# =============================================================================
# STATISTICS MODELS
# =============================================================================

class FCDStats(BaseModel):
    """
    Dashboard aggregates derived from the full entry list.

    Values are unrounded; rounding to currency precision is a
    presentation concern.
    """
    model_config = ConfigDict(frozen=True)

    total_in: Decimal = ZERO
    total_out: Decimal = ZERO
    cash_remain: Decimal = ZERO

    gold_sell_total: Decimal = ZERO
    gold_buy_total: Decimal = ZERO
    gold_profit: Decimal = ZERO

    interest_income: Decimal = ZERO

    total_thb: Decimal = ZERO
    weighted_avg_rate: Decimal = ZERO
    total_value_thb: Decimal = ZERO
    total_value_usd: Decimal = ZERO

    total_entries: int = Field(default=0, ge=0)
    active_entries: int = Field(default=0, ge=0)

    @property
    def total_usd(self) -> Decimal:
        """Older dashboards call the net USD balance total_usd."""
        return self.cash_remain


class RatePoint(BaseModel):
    """One point of the exchange-rate history series."""
    model_config = ConfigDict(frozen=True)

    entry_id: int
    date: datetime
    rate: Decimal


class DashboardSnapshot(BaseModel):
    """Everything the dashboard shows, computed from one fetch."""
    model_config = ConfigDict(frozen=True)

    # Newest first
    entries: list[Entry] = Field(default_factory=list)
    stats: FCDStats = Field(default_factory=FCDStats)
    # Oldest first
    rate_history: list[RatePoint] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_allowed')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Outcome of validating one draft.

    Exactly one of `entry` / `issue` is set.
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    entry: Optional[CanonicalEntry] = None
    issue: Optional[ValidationIssue] = None

    @property
    def is_valid(self) -> bool:
        return self.entry is not None

    @property
    def reason(self) -> Optional[str]:
        return self.issue.message if self.issue else None
