"""
Statistics Engine

Derives the dashboard aggregates from the full list of entries.

DESIGN DECISION: compute_stats is a pure function. It keeps no cache,
never mutates its input and gives the same answer for any ordering
of the same entries. All arithmetic is Decimal and nothing is rounded;
rounding for display happens in the presentation layer.
"""

from decimal import Decimal
from typing import Iterable, Optional

from fcd_tracker.models.entry import (
    ZERO,
    Entry,
    FCDStats,
    FlowKind,
    RatePoint,
    TransactionType,
)


def _fx_fields(entry: Entry) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """THB and rate of an entry; always (None, None) for non-FX rows."""
    if entry.tx_type != TransactionType.FX:
        return None, None
    return entry.thb, entry.rate


def compute_stats(entries: Iterable[Entry]) -> FCDStats:
    """
    Compute the dashboard aggregates.

    Args:
        entries: Every stored entry, in any order

    Returns:
        FCDStats; all zero for an empty list
    """
    entries = list(entries)

    total_in = ZERO
    total_out = ZERO
    interest_income = ZERO
    gold_sell_total = ZERO
    gold_buy_total = ZERO
    total_thb = ZERO
    rated_usd = ZERO
    rated_thb = ZERO
    active_entries = 0

    for entry in entries:
        flow = entry.flow

        if flow.is_inflow:
            total_in += entry.usd
            active_entries += 1
        elif flow == FlowKind.OUTFLOW:
            total_out += entry.usd

        if flow == FlowKind.INTEREST_INFLOW:
            interest_income += entry.usd

        if entry.tx_type == TransactionType.GOLD_SELL:
            gold_sell_total += abs(entry.usd)
        elif entry.tx_type == TransactionType.GOLD_BUY:
            gold_buy_total += abs(entry.usd)

        thb, rate = _fx_fields(entry)
        if thb is not None:
            total_thb += thb
        # Null or zero rates stay out of both sums
        if rate is not None and rate > 0 and entry.usd:
            rated_usd += entry.usd
            rated_thb += entry.usd * rate

    weighted_avg_rate = rated_thb / rated_usd if rated_usd > 0 else ZERO
    cash_remain = total_in - total_out

    if weighted_avg_rate > 0:
        thb_in_usd = total_thb / weighted_avg_rate
    else:
        thb_in_usd = ZERO

    return FCDStats(
        total_in=total_in,
        total_out=total_out,
        cash_remain=cash_remain,
        gold_sell_total=gold_sell_total,
        gold_buy_total=gold_buy_total,
        gold_profit=gold_sell_total - gold_buy_total,
        interest_income=interest_income,
        total_thb=total_thb,
        weighted_avg_rate=weighted_avg_rate,
        total_value_thb=total_thb + cash_remain * weighted_avg_rate,
        total_value_usd=cash_remain + thb_in_usd,
        total_entries=len(entries),
        active_entries=active_entries,
    )


def rate_history(entries: Iterable[Entry]) -> list[RatePoint]:
    """
    Exchange-rate series for the rate chart, oldest first.

    Only FX entries with a positive rate contribute. Ties on the
    timestamp are broken by entry id so the series is stable.
    """
    points = []
    for entry in entries:
        _, rate = _fx_fields(entry)
        if rate is not None and rate > 0:
            points.append(RatePoint(entry_id=entry.id, date=entry.date, rate=rate))

    points.sort(key=lambda p: (p.date, p.entry_id))
    return points
