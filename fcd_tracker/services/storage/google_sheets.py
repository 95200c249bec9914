"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. The account holder can view their entries directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No server-side constraints (we check rows before appending)
- No sequences (ids are max(id) + 1, fine for a single writer)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

import asyncio
from datetime import datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from fcd_tracker.config import get_settings
from fcd_tracker.config.settings import GoogleSheetsSettings
from fcd_tracker.models.audit import AUDIT_COLUMNS, AuditEvent
from fcd_tracker.models.entry import CanonicalEntry, Entry, TransactionType
from fcd_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    EntryStorageInterface,
    StorageError,
    check_row_constraints,
)
from fcd_tracker.validation.validator import to_offset_timestamp


logger = structlog.get_logger(__name__)


# Column mappings for the entries sheet
ENTRY_COLUMNS = [
    "id",
    "created_at",
    "tx_type",
    "status",
    "date",
    "usd",
    "thb",
    "rate",
    "note",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_entries_sheet(self) -> gspread.Worksheet:
        """Get or create the entries worksheet."""
        return self._get_or_create_sheet(
            self._settings.entries_sheet_name,
            ENTRY_COLUMNS,
            rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


def _decimal_or_none(value: str) -> Optional[Decimal]:
    return _parse_amount(value) if value else None


def _parse_amount(value: str) -> Decimal:
    """Amounts edited by hand in Sheets may carry thousands separators."""
    return Decimal(value.replace(",", "").strip())


class GoogleSheetsEntryStorage(EntryStorageInterface):
    """
    Google Sheets implementation of entry storage.

    Entries are stored as rows in a worksheet with one entry per row.
    Amounts are written as plain decimal strings so no precision is
    lost to spreadsheet number formatting.

    gspread is blocking, so every sheet call runs in a worker thread.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        local_tz: Optional[tzinfo] = None,
    ):
        self._client = client or GoogleSheetsClient()
        # Rows edited by hand may lack an offset; they are read as local time
        self._local_tz = local_tz or get_settings().app.tzinfo

    def _entry_to_row(self, entry: Entry) -> list:
        """Convert an Entry to a spreadsheet row."""
        return [
            str(entry.id),
            entry.created_at.isoformat() if entry.created_at else "",
            entry.tx_type.value,
            entry.status,
            entry.date_iso,
            str(entry.usd),
            str(entry.thb) if entry.thb is not None else "",
            str(entry.rate) if entry.rate is not None else "",
            entry.note or "",
        ]

    def _row_to_entry(self, row: list) -> Entry:
        """Convert a spreadsheet row to an Entry."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Entry(
            id=int(safe_get(0)),
            created_at=datetime.fromisoformat(safe_get(1)) if safe_get(1) else None,
            tx_type=TransactionType(safe_get(2).strip()),
            # Blank status loads as unclassified
            status=safe_get(3),
            date=to_offset_timestamp(safe_get(4), self._local_tz),
            usd=_parse_amount(safe_get(5)),
            thb=_decimal_or_none(safe_get(6)),
            rate=_decimal_or_none(safe_get(7)),
            note=safe_get(8) or None,
        )

    def _read_rows(self) -> list[list]:
        sheet = self._client.get_entries_sheet()
        return sheet.get_all_values()[1:]  # Skip header

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_entries(self) -> list[Entry]:
        """
        Fetch every entry from Google Sheets.

        Rows that cannot be read at all are skipped with a warning;
        the dashboard then undercounts, and the log says by which row.
        """
        try:
            all_rows = await asyncio.to_thread(self._read_rows)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to fetch entries: {e}")

        entries = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                entries.append(self._row_to_entry(row))
            except (ValueError, InvalidOperation) as e:
                logger.warning("entry_row_skipped", row_id=row[0], error=str(e))

        return entries

    def _append(self, entry: CanonicalEntry) -> Entry:
        sheet = self._client.get_entries_sheet()
        ids = [int(v) for v in sheet.col_values(1)[1:] if v.strip().isdigit()]
        stored = Entry.from_canonical(
            entry,
            entry_id=max(ids, default=0) + 1,
            created_at=datetime.now(timezone.utc),
        )
        sheet.append_row(self._entry_to_row(stored), value_input_option="RAW")
        return stored

    async def append_entry(self, entry: CanonicalEntry) -> Entry:
        """
        Append an entry to Google Sheets.

        Not retried: a retry after a timed-out append could
        write the same entry twice.
        """
        check_row_constraints(entry)

        try:
            return await asyncio.to_thread(self._append, entry)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save entry: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _append(self, event: AuditEvent) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            await asyncio.to_thread(self._append, event)
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(AuditEvent.from_sheets_row(row))
            except Exception:
                continue
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [
                e for e in await asyncio.to_thread(self._read_events)
                if e.correlation_id == correlation_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = await asyncio.to_thread(self._read_events)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
