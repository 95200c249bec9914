"""Shared fixtures for FCD Tracker tests."""

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from fcd_tracker.models.entry import Entry, TransactionType
from fcd_tracker.validation import EntryValidator


BKK = timezone(timedelta(hours=7))


def _dec(value):
    return Decimal(str(value)) if value is not None else None


@pytest.fixture
def make_entry():
    """Factory for persisted entries with sequential ids."""
    ids = itertools.count(1)

    def _make(
        tx_type=TransactionType.FX,
        status="IN",
        usd="100",
        thb=None,
        rate=None,
        date=None,
        entry_id=None,
        note=None,
    ) -> Entry:
        return Entry(
            id=entry_id or next(ids),
            tx_type=tx_type,
            status=status,
            date=date or datetime(2026, 2, 3, 15, 30, tzinfo=BKK),
            usd=_dec(usd),
            thb=_dec(thb),
            rate=_dec(rate),
            note=note,
        )

    return _make


@pytest.fixture
def validator() -> EntryValidator:
    return EntryValidator(local_tz=ZoneInfo("Asia/Bangkok"))
