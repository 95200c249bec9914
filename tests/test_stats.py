"""Tests for the statistics engine."""

import random
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from fcd_tracker.models.entry import FCDStats, TransactionType
from fcd_tracker.stats import compute_stats, rate_history

from tests.conftest import BKK


def approx(value):
    return pytest.approx(value, abs=Decimal("1e-4"))


@pytest.fixture
def mixed_entries(make_entry):
    return [
        make_entry(usd="100", thb="3500", rate="35"),
        make_entry(usd="200", thb="7200", rate="36"),
        make_entry(tx_type=TransactionType.GOLD_BUY, status="OUT", usd="500"),
        make_entry(tx_type=TransactionType.GOLD_SELL, status="IN", usd="600"),
        make_entry(tx_type=TransactionType.INTEREST, status="Interest", usd="12.34"),
        make_entry(tx_type=TransactionType.TRANSFER, status="OUT", usd="50"),
    ]


class TestAggregates:
    """Aggregate definitions on small hand-checked inputs."""

    def test_empty_input_is_all_zero(self):
        stats = compute_stats([])
        assert stats == FCDStats()
        assert stats.weighted_avg_rate == 0
        assert stats.total_entries == 0

    def test_fx_weighted_rate(self, make_entry):
        stats = compute_stats([
            make_entry(usd="100", thb="3500", rate="35"),
            make_entry(usd="200", thb="7200", rate="36"),
        ])
        assert stats.weighted_avg_rate == approx(Decimal("35.6667"))
        assert stats.total_in == Decimal("300")
        assert stats.cash_remain == Decimal("300")
        assert stats.total_thb == Decimal("10700")

    def test_gold_profit(self, make_entry):
        stats = compute_stats([
            make_entry(tx_type=TransactionType.GOLD_BUY, status="OUT", usd="500"),
            make_entry(tx_type=TransactionType.GOLD_SELL, status="IN", usd="600"),
        ])
        assert stats.gold_profit == Decimal("100")
        assert stats.total_in == Decimal("600")
        assert stats.total_out == Decimal("500")
        assert stats.cash_remain == Decimal("100")

    def test_gold_totals_use_absolute_values(self, make_entry):
        stats = compute_stats([
            make_entry(tx_type=TransactionType.GOLD_BUY, status="OUT", usd="-500"),
        ])
        assert stats.gold_buy_total == Decimal("500")
        assert stats.gold_profit == Decimal("-500")

    def test_interest_counts_as_inflow(self, make_entry):
        stats = compute_stats([
            make_entry(tx_type=TransactionType.INTEREST, status="Interest", usd="50"),
        ])
        assert stats.total_in == Decimal("50")
        assert stats.interest_income == Decimal("50")
        assert stats.active_entries == 1

    def test_total_values(self, mixed_entries):
        stats = compute_stats(mixed_entries)
        rate = Decimal("10700") / Decimal("300")
        cash = Decimal("100") + Decimal("200") + Decimal("600") + Decimal("12.34") \
            - Decimal("500") - Decimal("50")

        assert stats.cash_remain == cash
        assert stats.total_value_thb == approx(Decimal("10700") + cash * rate)
        assert stats.total_value_usd == approx(cash + Decimal("10700") / rate)
        assert stats.total_entries == 6
        assert stats.active_entries == 4


class TestExclusions:
    """Entries that do not take part in some aggregates."""

    def test_unclassified_status_is_excluded_from_flows(self, make_entry):
        stats = compute_stats([
            make_entry(tx_type=TransactionType.TRANSFER, status="PENDING", usd="80"),
            make_entry(tx_type=TransactionType.TRANSFER, status="in", usd="20"),
        ])
        assert stats.total_in == 0
        assert stats.total_out == 0
        assert stats.active_entries == 0
        assert stats.total_entries == 2

    def test_zero_and_missing_rates_do_not_weigh(self, make_entry):
        stats = compute_stats([
            make_entry(usd="100", thb="3500", rate="35"),
            make_entry(usd="900", thb="0", rate="0"),
            make_entry(usd="400", thb=None, rate=None),
        ])
        assert stats.weighted_avg_rate == Decimal("35")
        assert stats.total_in == Decimal("1400")

    def test_no_rates_leaves_value_usd_as_cash(self, make_entry):
        stats = compute_stats([
            make_entry(tx_type=TransactionType.TRANSFER, usd="250"),
        ])
        assert stats.weighted_avg_rate == 0
        assert stats.total_value_usd == Decimal("250")
        assert stats.total_value_thb == 0

    def test_legacy_thb_on_non_fx_row_is_ignored(self, make_entry):
        stats = compute_stats([
            make_entry(tx_type=TransactionType.GOLD_SELL, usd="600", thb="999", rate="40"),
        ])
        assert stats.total_thb == 0
        assert stats.weighted_avg_rate == 0


class TestPurity:
    """Repeat calls and reordering give identical results."""

    def test_idempotent(self, mixed_entries):
        snapshot = list(mixed_entries)
        first = compute_stats(mixed_entries)
        second = compute_stats(mixed_entries)
        assert first == second
        assert mixed_entries == snapshot

    def test_order_independent(self, mixed_entries):
        expected = compute_stats(mixed_entries)
        rng = random.Random(1234)
        for _ in range(10):
            shuffled = list(mixed_entries)
            rng.shuffle(shuffled)
            assert compute_stats(shuffled) == expected

    def test_accepts_generators(self, mixed_entries):
        assert compute_stats(e for e in mixed_entries) == compute_stats(mixed_entries)


class TestRateHistory:
    """Series feeding the exchange-rate chart."""

    def test_oldest_first_and_fx_only(self, make_entry):
        start = datetime(2026, 1, 1, 9, 0, tzinfo=BKK)
        entries = [
            make_entry(usd="100", thb="3600", rate="36", date=start + timedelta(days=2)),
            make_entry(usd="100", thb="3500", rate="35", date=start),
            make_entry(tx_type=TransactionType.GOLD_BUY, status="OUT", usd="10", rate="40"),
            make_entry(usd="100", thb="0", rate="0", date=start + timedelta(days=1)),
        ]
        points = rate_history(entries)
        assert [p.rate for p in points] == [Decimal("35"), Decimal("36")]
        assert [p.entry_id for p in points] == [2, 1]

    def test_ties_break_on_entry_id(self, make_entry):
        when = datetime(2026, 1, 1, tzinfo=BKK)
        entries = [
            make_entry(entry_id=9, usd="1", thb="35", rate="35", date=when),
            make_entry(entry_id=4, usd="1", thb="36", rate="36", date=when),
        ]
        assert [p.entry_id for p in rate_history(entries)] == [4, 9]

    def test_empty(self):
        assert rate_history([]) == []
