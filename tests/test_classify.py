"""
Tests for betsheet.classify module.
"""
from __future__ import annotations

from betsheet.classify import (
    RowKind,
    classify_row,
    is_bet_id,
    is_blank_row,
    is_date_like,
    is_header_row,
    is_leg_continuation,
    is_parlay_header,
    is_parlay_marker,
    is_single_bet,
)


SINGLE_ROW = [
    "9 Feb 2025 @ 4:08pm", "Won", "NBA", "Lakers vs Celtics", "Single", "Moneyline",
    "Lakers", "1.91", "10", "19.10", "19.10", "Won", "1234567890123456789",
]

PARLAY_ROW = [
    "9 Feb 2025 @ 4:08pm", "Open", "NBA", "Lakers vs Celtics, Warriors vs Nets", "MULTIPLE",
    "", "", "3.50", "10", "", "", "", "1111111111111111111",
]

LEG_ROW = [
    "", "Won", "NBA", "Lakers vs Celtics", "", "Moneyline", "Lakers", "1.91",
    "", "", "", "9 Feb 2025 @ 7:30pm",
]


# ---------- token predicates ----------


def test_is_date_like():
    """Test the known date encodings are recognized."""
    assert is_date_like("9 Feb 2025 @ 4:08pm")
    assert is_date_like("2025-02-09")
    assert is_date_like("02/09/2025 16:08")
    assert is_date_like("February 9, 2025")


def test_is_date_like_rejects_other_tokens():
    """Test outcomes, prices and bet ids are not date-like."""
    for token in ["Won", "1.91", "10", "1234567890123456789", "", None]:
        assert not is_date_like(token), f"{token!r} should not be date-like"


def test_is_bet_id():
    """Test bet ids must be exactly 19 digits."""
    assert is_bet_id("1234567890123456789")
    assert is_bet_id(" 1234567890123456789 ")
    assert not is_bet_id("123456789012345678")
    assert not is_bet_id("12345678901234567890")
    assert not is_bet_id("12345678901234567a9")
    assert not is_bet_id(None)


def test_is_parlay_marker():
    """Test MULTIPLE and any PARLAY mention mark a parlay."""
    assert is_parlay_marker("MULTIPLE")
    assert is_parlay_marker("multiple")
    assert is_parlay_marker("3 Leg Parlay")
    assert not is_parlay_marker("Single")
    assert not is_parlay_marker("")


def test_is_blank_row():
    assert is_blank_row(["", "  ", None])
    assert not is_blank_row(["", "x"])


# ---------- row predicates ----------


def test_single_row_classification():
    """Test a dated non-parlay row with a match is a single bet."""
    assert is_single_bet(SINGLE_ROW)
    assert not is_parlay_header(SINGLE_ROW)
    assert classify_row(SINGLE_ROW) == RowKind.SINGLE_BET


def test_single_requires_match_or_market():
    """Test a dated row with neither match nor market is not a single bet."""
    row = ["9 Feb 2025 @ 4:08pm", "Won", "NBA", "", "Single", "", "", "1.91"]
    assert not is_single_bet(row)
    assert classify_row(row) == RowKind.UNCLASSIFIED


def test_parlay_header_classification():
    """Test a dated MULTIPLE row is a parlay header, never a single."""
    assert is_parlay_header(PARLAY_ROW)
    assert not is_single_bet(PARLAY_ROW)
    assert classify_row(PARLAY_ROW) == RowKind.PARLAY_HEADER


def test_leg_continuation_classification():
    """Test a blank-date row with status/league/match text is a leg continuation."""
    assert is_leg_continuation(LEG_ROW)
    assert not is_leg_continuation(SINGLE_ROW)
    assert classify_row(LEG_ROW) == RowKind.LEG


def test_classification_is_idempotent():
    """Test classifying the same row twice yields the same answer."""
    for row in [SINGLE_ROW, PARLAY_ROW, LEG_ROW, ["", "", ""]]:
        assert classify_row(row) == classify_row(row)


# ---------- header detection ----------


def test_is_header_row():
    """Test header detection needs two header tokens and no dates."""
    assert is_header_row(["Date Placed", "Status", "League", "Match", "Bet Type"])
    assert is_header_row(["Date", "Outcome", "Sport", "Match"])
    assert not is_header_row(["Date Placed", "Odds", "Stake"])
    assert not is_header_row(SINGLE_ROW)
    assert not is_header_row([])
