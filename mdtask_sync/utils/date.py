"""
Date parsing and formatting utilities.
"""

from datetime import date, datetime, timedelta
from typing import Optional
import logging

import dateparser


logger = logging.getLogger(__name__)

# Phrases resolved without consulting dateparser
_RELATIVE_DAYS = {
    "today": 0,
    "tomorrow": 1,
    "yesterday": -1,
}


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a date string into a date object.

    Handles various formats:
    - ISO format (YYYY-MM-DD)
    - ISO datetime (YYYY-MM-DDTHH:MM:SS)

    Args:
        date_str: Date string to parse

    Returns:
        Parsed date object or None if invalid
    """
    if not date_str:
        return None

    # Take only date part if it's a datetime string
    if 'T' in date_str:
        date_str = date_str.split('T')[0]

    # Remove timezone if present
    date_str = date_str.split('+')[0].split('Z')[0]

    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        return None


def parse_natural_date(phrase: Optional[str], today: Optional[date] = None) -> Optional[date]:
    """
    Resolve a natural-language date phrase relative to ``today``.

    ``today``, ``tomorrow`` and ``yesterday`` are handled directly; any
    other phrase is handed to dateparser (English, future dates preferred).

    Args:
        phrase: Free text such as "tomorrow" or "in 3 days"
        today: Reference date; defaults to the current local date

    Returns:
        The resolved date or None when the phrase is not a date
    """
    if not phrase:
        return None

    text = " ".join(phrase.split()).lower()
    if not text or all(ch.isdigit() or ch == '-' for ch in text):
        return None

    base = today or date.today()
    if text in _RELATIVE_DAYS:
        return base + timedelta(days=_RELATIVE_DAYS[text])

    parsed = dateparser.parse(
        text,
        languages=['en'],
        settings={
            'RELATIVE_BASE': datetime(base.year, base.month, base.day),
            'PREFER_DATES_FROM': 'future',
            'STRICT_PARSING': False,
        },
    )
    if parsed is None:
        logger.debug("Not a date phrase: %r", phrase)
        return None
    return parsed.date()


def format_date(d: Optional[date]) -> Optional[str]:
    """
    Format a date object as ISO string (YYYY-MM-DD).

    Args:
        d: Date object to format

    Returns:
        ISO formatted date string or None
    """
    if not d:
        return None

    return d.strftime('%Y-%m-%d')
