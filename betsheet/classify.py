"""
Row and token classification.

Every predicate here is a pure function of its input: classifying the same
row twice always yields the same answer.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Sequence

from betsheet.constants import (
    BET_ID_LENGTH,
    DATE_PATTERNS,
    HEADER_TOKENS,
    MIN_HEADER_TOKEN_HITS,
    MULTIPLE_MARKER,
    PARLAY_MARKER,
)
from betsheet.layout import ColumnLayout


class RowKind(str, Enum):
    PARLAY_HEADER = "parlay_header"
    SINGLE_BET = "single_bet"
    LEG = "leg"
    UNCLASSIFIED = "unclassified"


def is_date_like(token: Any) -> bool:
    """True if ``token`` starts with one of the known sportsbook date encodings."""
    if token is None:
        return False
    text = str(token).strip()
    if not text:
        return False
    return any(pattern.match(text) for pattern in DATE_PATTERNS)


def is_bet_id(token: Any) -> bool:
    """True if ``token`` is exactly 19 decimal digits."""
    if token is None:
        return False
    text = str(token).strip()
    return len(text) == BET_ID_LENGTH and text.isascii() and text.isdigit()


def is_parlay_marker(bet_type: str) -> bool:
    upper = bet_type.strip().upper()
    return upper == MULTIPLE_MARKER or PARLAY_MARKER in upper


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in row)


def is_header_row(row: Sequence[Any]) -> bool:
    """
    Heuristic header detection.

    The row is a header when its cells mention at least two of "date",
    "status", "league" and "match" and none of its cells is a date.
    """
    cells = [str(c).strip().lower() for c in row if c is not None and str(c).strip()]
    if not cells or any(is_date_like(c) for c in cells):
        return False
    hits = sum(1 for token in HEADER_TOKENS if any(token in c for c in cells))
    return hits >= MIN_HEADER_TOKEN_HITS


def is_parlay_header(row: Sequence[Any], layout: Optional[ColumnLayout] = None) -> bool:
    layout = layout or ColumnLayout.default()
    return (
        is_parlay_marker(layout.cell(row, "Bet Type"))
        and is_date_like(layout.cell(row, "Date Placed"))
    )


def is_single_bet(row: Sequence[Any], layout: Optional[ColumnLayout] = None) -> bool:
    layout = layout or ColumnLayout.default()
    return (
        not is_parlay_marker(layout.cell(row, "Bet Type"))
        and is_date_like(layout.cell(row, "Date Placed"))
        and (layout.cell(row, "Match") != "" or layout.cell(row, "Market") != "")
    )


def is_leg_continuation(row: Sequence[Any], layout: Optional[ColumnLayout] = None) -> bool:
    """
    True for rows with a blank date cell but some status/league/match text.

    Only meaningful while a parlay is open; the assembler checks that.
    """
    layout = layout or ColumnLayout.default()
    if layout.cell(row, "Date Placed") != "":
        return False
    return any(layout.cell(row, col) != "" for col in ("Status", "League", "Match"))


def classify_row(row: Sequence[Any], layout: Optional[ColumnLayout] = None) -> RowKind:
    """Classify a row; leg continuation is reported regardless of parlay state."""
    layout = layout or ColumnLayout.default()
    if is_parlay_header(row, layout):
        return RowKind.PARLAY_HEADER
    if is_single_bet(row, layout):
        return RowKind.SINGLE_BET
    if is_leg_continuation(row, layout):
        return RowKind.LEG
    return RowKind.UNCLASSIFIED
