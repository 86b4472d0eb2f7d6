"""
Tests for betsheet.assembler module.

Covers row-mode assembly (singles, parlays, leg numbering, skipping), the
flat-token mode and bet-slip id synthesis.
"""
from __future__ import annotations

import random
from datetime import datetime

import pytest

from betsheet.assembler import (
    BetSlipIdFactory,
    ParlayOpen,
    RecordAssembler,
    Scanning,
    assemble_rows,
    assemble_tokens,
)
from betsheet.classify import RowKind
from betsheet.config import ExtractionConfig
from betsheet.layout import ColumnLayout


SINGLE_ROW = [
    "9 Feb 2025 @ 4:08pm", "Won", "NBA", "Lakers vs Celtics", "Single", "Moneyline",
    "Lakers", "1.91", "10", "19.10", "19.10", "Won", "1234567890123456789",
]

PARLAY_ROW = [
    "9 Feb 2025 @ 4:08pm", "Open", "NBA", "Lakers vs Celtics, Warriors vs Nets", "MULTIPLE",
    "", "", "3.50", "10", "", "", "", "1111111111111111111",
]

LEG_ROWS = [
    ["", "Won", "NBA", "Lakers vs Celtics", "", "Moneyline", "Lakers", "1.91",
     "", "", "", "9 Feb 2025 @ 7:30pm"],
    ["", "Lost", "NBA", "Warriors vs Nets", "", "Moneyline", "Nets", "1.83",
     "", "", "", ""],
]


def sequential_ids() -> BetSlipIdFactory:
    return BetSlipIdFactory("sequential")


# ---------- single bets ----------


def test_single_bet_row():
    """Test one single-bet row yields a SingleBet plus team stats for both sides."""
    batch = assemble_rows([SINGLE_ROW], "u1")

    assert len(batch.single_bets) == 1
    bet = batch.single_bets[0]
    assert bet.user_id == "u1"
    assert bet.date_placed == datetime(2025, 2, 9, 16, 8)
    assert bet.result == "Won"
    assert bet.wager == 10.0
    assert bet.winnings == pytest.approx(19.10)
    assert bet.price == pytest.approx(1.91)
    assert bet.bet_slip_id == "1234567890123456789"

    teams = {s.team: s for s in batch.team_stats}
    assert set(teams) == {"Lakers", "Celtics"}
    assert all(s.wins == 1 and s.total_bets == 1 for s in teams.values())
    assert batch.parlay_headers == [] and batch.parlay_legs == []


def test_result_falls_back_to_status_when_result_is_bet_id():
    """Test a bet id sitting in the result column does not become the result."""
    row = SINGLE_ROW[:11] + ["1234567890123456789"]
    batch = assemble_rows([row], "u1")

    bet = batch.single_bets[0]
    assert bet.result == "Won"
    assert bet.bet_slip_id == "1234567890123456789"


def test_numeric_date_with_seconds_is_kept():
    """Test a date-like cell with seconds populates date_placed."""
    row = list(SINGLE_ROW)
    row[0] = "02/09/2025 16:08:45"
    batch = assemble_rows([row], "u1")

    assert batch.single_bets[0].date_placed == datetime(2025, 2, 9, 16, 8, 45)
    assert batch.stats.fields_degraded == 0


def test_single_without_selection_uses_bet_type():
    """Test a blank selection cell on a single falls back to the bet type."""
    row = list(SINGLE_ROW)
    row[6] = ""
    batch = assemble_rows([row], "u1")

    assert batch.single_bets[0].selection == "Single"
    assert batch.single_bets[0].bet_type == "Single"


def test_unparseable_fields_degrade_to_none():
    """Test bad dates and amounts become None and are counted, not raised."""
    row = list(SINGLE_ROW)
    row[8] = "ten dollars"
    batch = assemble_rows([row], "u1")

    assert batch.single_bets[0].wager is None
    assert batch.stats.fields_degraded == 1


# ---------- parlays ----------


def test_parlay_with_two_legs():
    """Test a header followed by two leg rows yields legs numbered 1 and 2."""
    batch = assemble_rows([PARLAY_ROW, *LEG_ROWS], "u1")

    assert len(batch.parlay_headers) == 1
    header = batch.parlay_headers[0]
    assert header.bet_slip_id == "1111111111111111111"
    assert header.result == "Open"

    assert [leg.leg_number for leg in batch.parlay_legs] == [1, 2]
    assert all(leg.parlay_id == header.bet_slip_id for leg in batch.parlay_legs)

    first, second = batch.parlay_legs
    assert first.status == "Won"
    assert first.market == "Moneyline"
    assert first.selection == "Lakers"
    assert first.price == pytest.approx(1.91)
    assert first.game_date == datetime(2025, 2, 9, 19, 30)
    assert second.game_date is None


def test_parlay_headers_do_not_feed_stats():
    """Test only legs contribute to team stats for a parlay."""
    batch = assemble_rows([PARLAY_ROW, *LEG_ROWS], "u1")

    teams = {s.team: s for s in batch.team_stats}
    assert set(teams) == {"Lakers", "Celtics", "Warriors", "Nets"}
    assert teams["Lakers"].wins == 1 and teams["Lakers"].total_bets == 1
    assert teams["Nets"].losses == 1 and teams["Nets"].total_bets == 1


def test_legs_stop_at_next_single():
    """Test a single-bet row closes the open parlay."""
    trailing_leg = ["", "Won", "NFL", "Chiefs @ Bills", "", "Spread", "Chiefs", "1.90", "", "", "", ""]
    batch = assemble_rows([PARLAY_ROW, LEG_ROWS[0], SINGLE_ROW, trailing_leg], "u1")

    assert len(batch.parlay_legs) == 1
    assert len(batch.single_bets) == 1
    assert batch.stats.orphan_legs == 1


def test_leg_count_is_not_capped_by_commas():
    """Test every leg row before the next header attaches, whatever the commas imply."""
    third_leg = ["", "Won", "NFL", "Chiefs @ Bills", "", "Spread", "Chiefs", "1.90", "", "", "", ""]
    batch = assemble_rows([PARLAY_ROW, *LEG_ROWS, third_leg], "u1")

    assert [leg.leg_number for leg in batch.parlay_legs] == [1, 2, 3]


def test_leg_numbers_restart_per_parlay():
    """Test leg numbering starts at 1 for each parlay."""
    second_header = list(PARLAY_ROW)
    second_header[12] = "2222222222222222222"
    batch = assemble_rows([PARLAY_ROW, *LEG_ROWS, second_header, LEG_ROWS[0]], "u1")

    assert [leg.leg_number for leg in batch.legs_for("1111111111111111111")] == [1, 2]
    assert [leg.leg_number for leg in batch.legs_for("2222222222222222222")] == [1]


def test_leg_market_and_selection_fallbacks():
    """Test legs borrow market from bet type and selection from potential payout."""
    leg = ["", "Won", "NBA", "Lakers vs Celtics", "Player Points", "", "", "1.91",
           "", "", "", "", "", "LeBron James Over 25.5"]
    batch = assemble_rows([PARLAY_ROW, leg], "u1")

    parsed = batch.parlay_legs[0]
    assert parsed.market == "Player Points"
    assert parsed.selection == "LeBron James Over 25.5"


def test_state_machine_transitions():
    """Test the assembler moves between Scanning and ParlayOpen."""
    assembler = RecordAssembler("u1", id_factory=sequential_ids())
    assert isinstance(assembler.state, Scanning)

    assert assembler.feed_row(PARLAY_ROW) == RowKind.PARLAY_HEADER
    assert isinstance(assembler.state, ParlayOpen)
    assert assembler.state.declared_legs == 2

    assert assembler.feed_row(LEG_ROWS[0]) == RowKind.LEG
    assert assembler.state.leg_counter == 1

    assert assembler.feed_row(SINGLE_ROW) == RowKind.SINGLE_BET
    assert isinstance(assembler.state, Scanning)


# ---------- skipping ----------


def test_short_blank_row_is_skipped():
    """Test a three-cell blank row appears nowhere and touches no stat."""
    batch = assemble_rows([["", "", ""]], "u1")

    assert batch.is_empty
    assert batch.team_stats == [] and batch.player_stats == [] and batch.prop_stats == []
    assert batch.stats.rows_skipped == 1


def test_malformed_rows_do_not_abort():
    """Test junk rows around a valid row are skipped without raising."""
    rows = [["x"], ["", "", "", "", "", ""], ["a", "b", "c", "d", "e"], SINGLE_ROW]
    batch = assemble_rows(rows, "u1")

    assert len(batch.single_bets) == 1
    assert batch.stats.rows_skipped == 2
    assert batch.stats.rows_unclassified == 1


def test_min_cells_is_configurable():
    """Test a narrower minimum admits narrower rows."""
    row = ["9 Feb 2025 @ 4:08pm", "Won", "NBA", "Lakers vs Celtics"]

    assert assemble_rows([row], "u1").single_bets == []
    assert len(assemble_rows([row], "u1", config=ExtractionConfig(min_cells=4)).single_bets) == 1


# ---------- bet-slip ids ----------


def test_missing_bet_id_is_synthesized_sequentially():
    """Test sequential ids carry the record kind and a running counter."""
    row = SINGLE_ROW[:12]
    parlay = PARLAY_ROW[:12]
    batch = assemble_rows([row, row, parlay], "u1", id_factory=sequential_ids())

    assert [b.bet_slip_id for b in batch.single_bets] == ["generated-single-1", "generated-single-2"]
    assert batch.parlay_headers[0].bet_slip_id == "generated-parlay-3"


def test_timestamp_ids_are_19_digits_and_unique():
    """Test timestamp ids mimic the sportsbook width and never repeat."""
    factory = BetSlipIdFactory("timestamp", clock=lambda: 1700000000.0, rng=random.Random(7))
    ids = [factory.next_id("single") for _ in range(50)]

    assert len(set(ids)) == 50
    assert all(len(i) == 19 and i.isdigit() for i in ids)


def test_synthesized_ids_avoid_explicit_ids():
    """Test a reserved explicit id is never handed out again."""
    factory = BetSlipIdFactory("sequential")
    factory.reserve("generated-single-1")

    assert factory.next_id("single") == "generated-single-2"


def test_bet_id_found_anywhere_in_row():
    """Test the last 19-digit token is used when the id column is empty."""
    row = SINGLE_ROW[:12] + ["", "9999999999999999999"]
    batch = assemble_rows([row], "u1")

    assert batch.single_bets[0].bet_slip_id == "9999999999999999999"


def test_header_layout_accepts_any_bet_id_text():
    """Test a named Bet Slip ID column is trusted even when not 19 digits."""
    header = ["Date Placed", "Status", "League", "Match", "Bet Type", "Market", "Bet Slip ID"]
    layout = ColumnLayout.from_header(header)
    row = ["9 Feb 2025 @ 4:08pm", "Won", "NBA", "Lakers vs Celtics", "Single", "Moneyline", "DK-42"]

    batch = assemble_rows([row], "u1", layout=layout)

    assert batch.single_bets[0].bet_slip_id == "DK-42"


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError, match="Unsupported bet id strategy"):
        BetSlipIdFactory("uuid")


# ---------- flat-token mode ----------


def test_token_mode_single_and_parlay():
    """Test records and legs are recovered from a stream with no row structure."""
    tokens = [
        "noise",
        *SINGLE_ROW[:12], "", "1234567890123456789",
        *PARLAY_ROW[:12], "", "1111111111111111111",
        "Won", "NBA", "Lakers vs Celtics", "Moneyline", "Lakers", "1.91", "9 Feb 2025 @ 7:30pm",
        "Lost", "NBA", "Warriors vs Nets", "Moneyline", "Nets", "1.83", "9 Feb 2025 @ 10:00pm",
    ]

    batch = assemble_tokens(tokens, "u1")

    assert len(batch.single_bets) == 1
    assert batch.single_bets[0].bet_slip_id == "1234567890123456789"
    assert len(batch.parlay_headers) == 1
    assert batch.parlay_headers[0].bet_slip_id == "1111111111111111111"

    legs = batch.parlay_legs
    assert [leg.leg_number for leg in legs] == [1, 2]
    assert legs[0].selection == "Lakers"
    assert legs[1].game_date == datetime(2025, 2, 9, 22, 0)


def test_token_mode_legs_stop_at_next_record():
    """Test leg collection ends at the next date-like token."""
    tokens = [
        *PARLAY_ROW[:12], "", "1111111111111111111",
        "Won", "NBA", "Lakers vs Celtics", "Moneyline", "Lakers", "1.91", "9 Feb 2025 @ 7:30pm",
        *SINGLE_ROW[:12], "",
    ]

    batch = assemble_tokens(tokens, "u1", id_factory=sequential_ids())

    assert len(batch.parlay_legs) == 1
    assert len(batch.single_bets) == 1
    assert batch.single_bets[0].bet_slip_id == "generated-single-1"


def test_token_mode_discards_short_leg_windows():
    """Test a leg window under five tokens is dropped."""
    tokens = [*PARLAY_ROW[:12], "", "Won", "NBA", "Lakers vs Celtics"]

    batch = assemble_tokens(tokens, "u1")

    assert len(batch.parlay_headers) == 1
    assert batch.parlay_legs == []
    assert batch.stats.rows_skipped == 1
