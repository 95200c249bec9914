"""
Entry Validation

Turns a user-editable EntryDraft into a CanonicalEntry, or rejects it.

RULES (evaluated in order, first failure wins):
1. FX: rate > 0 and THB > 0 are required, USD must be > 0
2. Non-FX: THB and rate must be empty (null or zero), USD must be > 0
3. Non-FX: THB and rate are forced to null
4. The local timestamp is converted to one with an explicit UTC offset
5. The status must be one the statistics engine understands
6. INTEREST entries must carry the Interest status

Drafts built from OCR go through exactly the same rules as manual ones.
Validation is a pure transform: nothing is persisted here.
"""

from datetime import datetime, timezone, tzinfo
from typing import Optional, Union

from pydantic import ValidationError

from fcd_tracker.config import get_settings
from fcd_tracker.models.entry import (
    CanonicalEntry,
    EntryDraft,
    FlowKind,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    classify_status,
)


class ValidationRejected(Exception):
    """A draft was rejected; carries the issue to show the user."""

    def __init__(self, issue: ValidationIssue):
        self.issue = issue
        super().__init__(issue.message)

    @property
    def field(self) -> str:
        return self.issue.field

    @property
    def reason(self) -> str:
        return self.issue.message


def _reject(
    field: str,
    issue_type: str,
    message: str,
    suggested_fix: Optional[str] = None,
) -> ValidationRejected:
    return ValidationRejected(ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        suggested_fix=suggested_fix,
    ))


def to_offset_timestamp(
    value: Union[datetime, str],
    local_tz: tzinfo,
) -> datetime:
    """
    Convert a draft timestamp to an aware datetime with a fixed offset.

    Naive values (the usual `yyyy-MM-ddTHH:mm` form input) are read as
    local time in `local_tz`; values that already carry an offset keep it.
    Sub-second precision is dropped.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"Not a timestamp: {value!r}")

    if parsed.tzinfo is None or parsed.utcoffset() is None:
        parsed = parsed.replace(tzinfo=local_tz)

    offset = timezone(parsed.utcoffset())
    return parsed.replace(tzinfo=offset, microsecond=0)


class EntryValidator:
    """Validates drafts before they are appended to storage."""

    def __init__(self, local_tz: Optional[tzinfo] = None):
        """
        Initialize validator.

        Args:
            local_tz: Timezone for drafts entered without an offset.
                      Defaults to AppSettings.timezone.
        """
        self._local_tz = local_tz or get_settings().app.tzinfo

    def _check_amounts(self, draft: EntryDraft) -> None:
        """Rules 1 and 2."""
        if draft.tx_type == TransactionType.FX:
            if draft.rate is None or draft.rate <= 0 or draft.thb is None or draft.thb <= 0:
                raise _reject(
                    field="rate" if draft.thb is not None and draft.thb > 0 else "thb",
                    issue_type="missing",
                    message="For FX, Rate and THB are required",
                    suggested_fix="Enter both the THB amount and the exchange rate",
                )
        else:
            if draft.thb is not None and draft.thb != 0:
                raise _reject(
                    field="thb",
                    issue_type="not_allowed",
                    message=f"For {draft.tx_type.value}, THB must be empty (null).",
                )
            if draft.rate is not None and draft.rate != 0:
                raise _reject(
                    field="rate",
                    issue_type="not_allowed",
                    message=f"For {draft.tx_type.value}, Rate must be empty (null).",
                )

        if draft.usd is None or draft.usd <= 0:
            raise _reject(
                field="usd",
                issue_type="invalid_value",
                message="Please enter USD amount",
                suggested_fix="USD must be greater than zero",
            )

    def validate(self, draft: EntryDraft) -> CanonicalEntry:
        """
        Validate a draft and build its canonical form.

        Returns:
            The CanonicalEntry to hand to storage

        Raises:
            ValidationRejected: On the first rule the draft breaks
        """
        self._check_amounts(draft)

        is_fx = draft.tx_type == TransactionType.FX
        thb = draft.thb if is_fx else None
        rate = draft.rate if is_fx else None

        try:
            date = to_offset_timestamp(draft.date, self._local_tz)
        except (TypeError, ValueError):
            raise _reject(
                field="date",
                issue_type="invalid_format",
                message=f"Could not read the date: {draft.date!r}",
                suggested_fix="Use the format yyyy-MM-ddTHH:mm",
            )

        flow = classify_status(draft.status)
        if flow == FlowKind.UNCLASSIFIED:
            raise _reject(
                field="status",
                issue_type="invalid_value",
                message=f"Unknown status {draft.status!r}; use IN, OUT or Interest",
            )

        if draft.tx_type == TransactionType.INTEREST and flow != FlowKind.INTEREST_INFLOW:
            raise _reject(
                field="status",
                issue_type="invalid_value",
                message="For INTEREST, Status must be Interest",
                suggested_fix="Set the status to Interest",
            )

        try:
            return CanonicalEntry(
                tx_type=draft.tx_type,
                status=draft.status.strip(),
                date=date,
                usd=draft.usd,
                thb=thb,
                rate=rate,
                note=draft.note or None,
            )
        except ValidationError as e:
            error = e.errors()[0]
            raise _reject(
                field=".".join(str(part) for part in error["loc"]) or "entry",
                issue_type="invalid_value",
                message=error["msg"],
            )

    def check(self, draft: EntryDraft) -> ValidationResult:
        """Like validate(), but reports the outcome instead of raising."""
        try:
            return ValidationResult(entry=self.validate(draft))
        except ValidationRejected as e:
            return ValidationResult(issue=e.issue)
