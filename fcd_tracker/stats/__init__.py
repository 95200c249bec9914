"""Statistics engine package."""

from fcd_tracker.models.entry import classify_status
from fcd_tracker.stats.engine import compute_stats, rate_history

__all__ = ["classify_status", "compute_stats", "rate_history"]
