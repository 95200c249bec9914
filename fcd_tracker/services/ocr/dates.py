"""
Slip date parsing.

Bank slips print dates like "Submission Date 3 February 2026 - 3:30 PM".
OCR output is noisy, so parsing is lenient and falls back to "now":
the user reviews the draft before it is validated anyway.
"""

import re
from datetime import datetime
from typing import Optional

from fcd_tracker.config import get_settings


_WITH_TIME_FORMATS = ["%d %B %Y - %I:%M %p", "%d %b %Y - %I:%M %p"]
_DATE_ONLY_FORMATS = ["%d %B %Y", "%d %b %Y"]


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone, naive, minute precision."""
    now = datetime.now(get_settings().app.tzinfo).replace(tzinfo=None)
    return now.replace(second=0, microsecond=0)


def parse_extracted_date(
    text: Optional[str],
    now: Optional[datetime] = None,
) -> datetime:
    """
    Turn an extracted date string into a naive local timestamp.

    Tries "d Month yyyy - h:mm AM/PM" first, then a bare date which
    takes the current hour and minute. Anything else (including no
    text at all) gives the current time.
    """
    now = (now or local_now()).replace(second=0, microsecond=0)
    if not text:
        return now

    clean = re.sub(r"submission date", "", text, flags=re.IGNORECASE).strip()
    clean = re.sub(r"\s+", " ", clean)
    clean = re.sub(r"\s*-\s*", " - ", clean)

    for fmt in _WITH_TIME_FORMATS:
        try:
            return datetime.strptime(clean, fmt)
        except ValueError:
            continue

    date_only = clean.split("-")[0].strip()
    for fmt in _DATE_ONLY_FORMATS:
        try:
            parsed = datetime.strptime(date_only, fmt)
        except ValueError:
            continue
        return parsed.replace(hour=now.hour, minute=now.minute)

    return now
