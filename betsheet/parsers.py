"""
Small value parsers for sportsbook exports.

Sportsbooks export timestamps in a handful of non-ISO layouts and money
amounts with currency symbols and thousands separators. Every parser here
degrades to ``None`` instead of raising, so a single bad cell never aborts a
batch.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from betsheet.constants import (
    DATE_PATTERNS,
    DAY_FIRST_DATE_RE,
    LEG_COUNT_DELIMITER,
    MONTHS,
    SPORTSBOOK_DATE_RE,
)

logger = logging.getLogger(__name__)


def is_valid_date(value: Any) -> bool:
    """True iff ``value`` is a date/datetime that is not a NaT sentinel."""
    if not isinstance(value, (datetime, date)):
        return False
    # pd.NaT is a datetime subclass
    return not pd.isna(value)


def _parse_standard(text: str) -> Optional[datetime]:
    dayfirst = DAY_FIRST_DATE_RE.match(text) is not None
    try:
        parsed = pd.to_datetime(text, errors="coerce", dayfirst=dayfirst)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def _parse_sportsbook(text: str) -> Optional[datetime]:
    """
    Parse the sportsbook ``D Mon YYYY @ H:MMam/pm`` layout.

    The 12-hour clock is converted to 24-hour; ``12:xxam`` is midnight and
    ``12:xxpm`` is noon.
    """
    match = SPORTSBOOK_DATE_RE.match(text)
    if not match:
        return None

    day, month_name, year, hour, minute, meridiem = match.groups()
    month = MONTHS.get(month_name.lower())
    if month is None:
        return None

    hour_24 = int(hour)
    if meridiem.lower() == "pm" and hour_24 < 12:
        hour_24 += 12
    elif meridiem.lower() == "am" and hour_24 == 12:
        hour_24 = 0

    try:
        return datetime(int(year), month, int(day), hour_24, int(minute))
    except ValueError:
        return None


def parse_date(text: Any) -> Optional[datetime]:
    """
    Parse a sportsbook date cell.

    The sportsbook's own ``D Mon YYYY @ H:MMam/pm`` layout is matched first;
    other recognised date prefixes (ISO-8601, ``MM/DD/YYYY``, ``Month D, YYYY``,
    ``D-Mon-YYYY``, ``D.M.YYYY``) go through ``pd.to_datetime``. Only
    ``D.M.YYYY`` is read day-first.

    Parameters
    ----------
    text : Any
        Raw cell value. Datetimes pass through; anything else is stringified.

    Returns
    -------
    Optional[datetime]
        Naive local datetime (or aware, for ISO input with an offset), or None
        when nothing matched.

    Examples
    --------
    >>> parse_date("9 Feb 2025 @ 4:08pm")
    datetime.datetime(2025, 2, 9, 16, 8)
    >>> parse_date("garbage") is None
    True
    """
    if isinstance(text, datetime):
        return text if is_valid_date(text) else None
    if text is None:
        return None

    trimmed = str(text).strip()
    if not trimmed:
        return None

    if SPORTSBOOK_DATE_RE.match(trimmed):
        parsed = _parse_sportsbook(trimmed)
    elif any(pattern.match(trimmed) for pattern in DATE_PATTERNS):
        parsed = _parse_standard(trimmed)
    else:
        # Only date-shaped text reaches pd.to_datetime
        parsed = None

    if parsed is None or not is_valid_date(parsed):
        logger.debug("Unparseable date %r", trimmed)
        return None
    return parsed


def parse_number(text: Any) -> Optional[float]:
    """
    Parse a currency-formatted amount such as ``"$1,234.50"``.

    Returns None for blanks and anything that is not a finite number.
    """
    if text is None:
        return None
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        value = float(text)
        return value if math.isfinite(value) else None

    cleaned = str(text).replace("$", "").replace(",", "").strip()
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        logger.debug("Unparseable number %r", text)
        return None
    return value if math.isfinite(value) else None


def count_declared_legs(match: Optional[str]) -> int:
    """
    Leg count implied by a parlay header's match description.

    One more than the number of commas; 0 for a blank field. Advisory only:
    exports with stray commas make this unreliable.
    """
    if not match or not match.strip():
        return 0
    return match.count(LEG_COUNT_DELIMITER) + 1
