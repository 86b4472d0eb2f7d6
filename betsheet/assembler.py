"""
Record assembly: normalized rows (or a flat token stream) -> bet records.

The assembler is an explicit two-state machine:

- ``Scanning``: looking for the next record start.
- ``ParlayOpen``: a parlay header was seen; leg-continuation rows attach to it
  until the next header or single-bet row.

Leg accumulation never stops at the leg count implied by the header's match
field. That count is derived from commas and is wrong whenever a team or
market name carries one, so it is kept on the state for diagnostics only.

The assembler never raises on malformed rows: short or blank rows are
skipped, unclassified rows are ignored and unparseable fields degrade to
None.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Set, Union

from betsheet.aggregate import StatsAggregator
from betsheet.classify import (
    RowKind,
    is_bet_id,
    is_blank_row,
    is_date_like,
    is_leg_continuation,
    is_parlay_header,
    is_single_bet,
)
from betsheet.config import ExtractionConfig
from betsheet.constants import (
    BET_ID_LENGTH,
    GENERATED_PARLAY_PREFIX,
    GENERATED_SINGLE_PREFIX,
)
from betsheet.layout import ColumnLayout
from betsheet.models import (
    ExtractionBatch,
    ParlayHeader,
    ParlayLeg,
    SingleBet,
)
from betsheet.parsers import count_declared_legs, parse_date, parse_number

logger = logging.getLogger(__name__)

# Token-mode window widths
RECORD_WINDOW = 13
LEG_WINDOW = 7
MIN_LEG_TOKENS = 5


# ============================================================================
# Bet-slip ids
# ============================================================================

class BetSlipIdFactory:
    """
    Synthesizes bet-slip ids for records whose export carries none.

    ``timestamp`` ids are epoch milliseconds plus three random digits,
    zero-padded to the sportsbook's 19-digit width. ``sequential`` ids are
    ``generated-parlay-N`` / ``generated-single-N`` with one counter per
    factory. Either way ids are unique per factory, i.e. per extraction call;
    re-uploading the same file yields different ids.
    """

    def __init__(
        self,
        strategy: str = "timestamp",
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        if strategy not in ("timestamp", "sequential"):
            raise ValueError(f"Unsupported bet id strategy: {strategy}")
        self.strategy = strategy
        self._clock = clock
        self._rng = rng or random.Random()
        self._counter = 0
        self._issued: Set[str] = set()

    def reserve(self, bet_slip_id: str) -> None:
        """Mark an explicit id as taken so no synthesized id collides with it."""
        self._issued.add(bet_slip_id)

    def next_id(self, kind: str = "single") -> str:
        if self.strategy == "sequential":
            prefix = GENERATED_PARLAY_PREFIX if kind == "parlay" else GENERATED_SINGLE_PREFIX
            self._counter += 1
            candidate = f"{prefix}{self._counter}"
            while candidate in self._issued:
                self._counter += 1
                candidate = f"{prefix}{self._counter}"
        else:
            millis = int(self._clock() * 1000)
            candidate = f"{millis}{self._rng.randrange(1000):03d}".ljust(BET_ID_LENGTH, "0")
            while candidate in self._issued:
                candidate = str(int(candidate) + 1)

        self._issued.add(candidate)
        logger.debug("Generated bet slip id %s for %s", candidate, kind)
        return candidate


# ============================================================================
# State
# ============================================================================

@dataclass(frozen=True)
class Scanning:
    pass


@dataclass
class ParlayOpen:
    bet_slip_id: str
    leg_counter: int = 0
    declared_legs: int = 0


AssemblerState = Union[Scanning, ParlayOpen]


# ============================================================================
# Assembler
# ============================================================================

class RecordAssembler:
    """
    Incremental assembler for one extraction call.

    Feed rows in file order with ``feed_row`` (or call ``feed_tokens`` once
    for a flat token stream), then call ``finish`` for the batch.
    """

    def __init__(
        self,
        user_id: str,
        layout: Optional[ColumnLayout] = None,
        config: Optional[ExtractionConfig] = None,
        id_factory: Optional[BetSlipIdFactory] = None,
    ) -> None:
        self.user_id = user_id
        self.layout = layout or ColumnLayout.default()
        self.config = config or ExtractionConfig()
        self.ids = id_factory or BetSlipIdFactory(self.config.bet_id_strategy)
        self.state: AssemblerState = Scanning()
        self.batch = ExtractionBatch()
        self._aggregator = StatsAggregator()
        self._finished = False

    # ---------- field helpers ----------

    def _text(self, row: Sequence[str], column: str) -> Optional[str]:
        return self.layout.cell(row, column) or None

    def _number(self, raw: Optional[str]) -> Optional[float]:
        value = parse_number(raw)
        if value is None and raw:
            self.batch.stats.fields_degraded += 1
        return value

    def _date(self, raw: Optional[str]):
        value = parse_date(raw)
        if value is None and raw:
            self.batch.stats.fields_degraded += 1
        return value

    def _explicit_bet_id(self, row: Sequence[str]) -> Optional[str]:
        column_value = self.layout.cell(row, "Bet Slip ID")
        if column_value and (self.layout.source == "header" or is_bet_id(column_value)):
            return column_value
        for cell in reversed(row):
            if is_bet_id(cell):
                return str(cell).strip()
        return None

    def _resolve_bet_id(self, row: Sequence[str], kind: str, explicit: Optional[str]) -> str:
        bet_slip_id = explicit or self._explicit_bet_id(row)
        if bet_slip_id:
            self.ids.reserve(bet_slip_id)
            return bet_slip_id
        return self.ids.next_id(kind)

    def _result(self, row: Sequence[str]) -> Optional[str]:
        result = self.layout.cell(row, "Result")
        if not result or is_bet_id(result):
            return self._text(row, "Status")
        return result

    def _common_fields(self, row: Sequence[str]) -> dict:
        return dict(
            user_id=self.user_id,
            date_placed=self._date(self._text(row, "Date Placed")),
            status=self._text(row, "Status"),
            league=self._text(row, "League"),
            match=self._text(row, "Match"),
            bet_type=self._text(row, "Bet Type"),
            market=self._text(row, "Market"),
            selection=self._text(row, "Selection"),
            price=self._number(self._text(row, "Price")),
            wager=self._number(self._text(row, "Wager")),
            winnings=self._number(self._text(row, "Winnings")),
            payout=self._number(self._text(row, "Payout")),
            result=self._result(row),
        )

    # ---------- transitions ----------

    def _close_parlay(self) -> None:
        if isinstance(self.state, ParlayOpen):
            state = self.state
            if state.declared_legs and state.declared_legs != state.leg_counter:
                logger.debug(
                    "Parlay %s: match field implies %d legs, consumed %d",
                    state.bet_slip_id,
                    state.declared_legs,
                    state.leg_counter,
                )
        self.state = Scanning()

    def emit_single(self, row: Sequence[str], bet_slip_id: Optional[str] = None) -> SingleBet:
        self._close_parlay()
        fields = self._common_fields(row)
        if fields["selection"] is None:
            fields["selection"] = fields["bet_type"]
        bet = SingleBet(**fields, bet_slip_id=self._resolve_bet_id(row, "single", bet_slip_id))
        self.batch.single_bets.append(bet)
        self._aggregator.add_single(bet)
        logger.debug("Single bet %s placed %s", bet.bet_slip_id, bet.date_placed)
        return bet

    def open_parlay(self, row: Sequence[str], bet_slip_id: Optional[str] = None) -> ParlayHeader:
        self._close_parlay()
        fields = self._common_fields(row)
        header = ParlayHeader(
            **fields,
            potential_payout=self._number(self._text(row, "Potential Payout")),
            bet_slip_id=self._resolve_bet_id(row, "parlay", bet_slip_id),
        )
        self.batch.parlay_headers.append(header)
        self.state = ParlayOpen(
            bet_slip_id=header.bet_slip_id,
            declared_legs=count_declared_legs(header.match),
        )
        logger.debug("Parlay header %s placed %s", header.bet_slip_id, header.date_placed)
        return header

    def emit_leg(
        self,
        status: Optional[str],
        league: Optional[str],
        match: Optional[str],
        market: Optional[str],
        selection: Optional[str],
        price: Optional[str],
        game_date: Optional[str],
    ) -> Optional[ParlayLeg]:
        if not isinstance(self.state, ParlayOpen):
            self.batch.stats.orphan_legs += 1
            logger.debug("Leg-shaped row with no open parlay; skipped")
            return None

        self.state.leg_counter += 1
        leg = ParlayLeg(
            parlay_id=self.state.bet_slip_id,
            leg_number=self.state.leg_counter,
            status=status or None,
            league=league or None,
            match=match or None,
            market=market or None,
            selection=selection or None,
            price=self._number(price),
            game_date=self._date(game_date),
        )
        self.batch.parlay_legs.append(leg)
        self._aggregator.add_leg(leg, self.user_id)
        return leg

    def _leg_from_row(self, row: Sequence[str]) -> Optional[ParlayLeg]:
        bet_type = self._text(row, "Bet Type")
        market = self._text(row, "Market")
        market_from_bet_type = market is None and bet_type is not None
        if market_from_bet_type:
            market = bet_type

        # Alternate export layouts put the leg selection under Potential Payout
        selection = self._text(row, "Selection") or self._text(row, "Potential Payout")
        if selection is None and not market_from_bet_type:
            selection = bet_type

        return self.emit_leg(
            status=self._text(row, "Status"),
            league=self._text(row, "League"),
            match=self._text(row, "Match"),
            market=market,
            selection=selection,
            price=self._text(row, "Price"),
            game_date=self._text(row, "Result"),
        )

    # ---------- row mode ----------

    def feed_row(self, row: Sequence[str]) -> Optional[RowKind]:
        """Consume one row; returns what it was classified as, or None if skipped."""
        self.batch.stats.rows_seen += 1

        if len(row) < self.config.min_cells or is_blank_row(row):
            self.batch.stats.rows_skipped += 1
            return None

        if is_parlay_header(row, self.layout):
            self.open_parlay(row)
            return RowKind.PARLAY_HEADER
        if is_single_bet(row, self.layout):
            self.emit_single(row)
            return RowKind.SINGLE_BET
        if is_leg_continuation(row, self.layout):
            if self._leg_from_row(row) is not None:
                return RowKind.LEG
            return RowKind.UNCLASSIFIED

        self.batch.stats.rows_unclassified += 1
        return RowKind.UNCLASSIFIED

    # ---------- token mode ----------

    def feed_tokens(self, tokens: Sequence[str]) -> None:
        """
        Walk a flat token stream with no row structure.

        A record starts at a date-like token and spans the next 13 tokens
        (blank tokens are empty fields). A 19-digit token right after the
        window is its bet-slip id. Parlay headers are followed by leg windows
        of up to 7 non-blank tokens whose last slot is the game date; legs
        stop at the next date-like token that opens a window.
        """
        values = ["" if t is None else str(t).strip() for t in tokens]
        n = len(values)
        pos = 0

        while pos < n:
            token = values[pos]
            if not token or not is_date_like(token):
                pos += 1
                continue

            window = values[pos:pos + RECORD_WINDOW]
            if len(window) < self.config.min_cells:
                self.batch.stats.rows_skipped += 1
                pos += 1
                continue
            if any(is_date_like(v) for v in window[1:]):
                # A second date inside the window: this start was noise
                logger.debug("Repeated date inside record window at token %d", pos)
                pos += 1
                continue

            self.batch.stats.rows_seen += 1
            pos += len(window)

            bet_slip_id = None
            if pos < n and is_bet_id(values[pos]):
                bet_slip_id = values[pos]
                pos += 1

            if is_parlay_header(window, self.layout):
                self.open_parlay(window, bet_slip_id)
                pos = self._consume_token_legs(values, pos)
            elif is_single_bet(window, self.layout):
                self.emit_single(window, bet_slip_id)
            else:
                self.batch.stats.rows_unclassified += 1

    def _consume_token_legs(self, values: List[str], pos: int) -> int:
        n = len(values)
        while pos < n:
            if not values[pos]:
                pos += 1
                continue
            if is_date_like(values[pos]):
                break

            leg: List[str] = []
            j = pos
            while len(leg) < LEG_WINDOW and j < n:
                value = values[j]
                if not value:
                    j += 1
                    continue
                # Only the last slot (game date) may hold a date; elsewhere it starts the next record
                if leg and is_date_like(value) and len(leg) < LEG_WINDOW - 1:
                    break
                leg.append(value)
                j += 1
            pos = j

            if len(leg) < MIN_LEG_TOKENS:
                self.batch.stats.rows_skipped += 1
                logger.debug("Leg window too short (%d tokens); skipped", len(leg))
                continue

            leg += [""] * (LEG_WINDOW - len(leg))
            self.emit_leg(*leg)
        return pos

    # ---------- result ----------

    def finish(self) -> ExtractionBatch:
        if not self._finished:
            self._close_parlay()
            self.batch.team_stats = self._aggregator.team_stats()
            self.batch.player_stats = self._aggregator.player_stats()
            self.batch.prop_stats = self._aggregator.prop_stats()
            self._finished = True
        return self.batch


def assemble_rows(
    rows: Iterable[Sequence[str]],
    user_id: str,
    layout: Optional[ColumnLayout] = None,
    config: Optional[ExtractionConfig] = None,
    id_factory: Optional[BetSlipIdFactory] = None,
) -> ExtractionBatch:
    """Assemble records from normalized rows (row-oriented mode)."""
    assembler = RecordAssembler(user_id, layout=layout, config=config, id_factory=id_factory)
    for row in rows:
        assembler.feed_row(row)
    batch = assembler.finish()
    logger.info(
        "Assembled %d single bets, %d parlays with %d legs (%d rows skipped, %d unclassified)",
        len(batch.single_bets),
        len(batch.parlay_headers),
        len(batch.parlay_legs),
        batch.stats.rows_skipped,
        batch.stats.rows_unclassified,
    )
    return batch


def assemble_tokens(
    tokens: Sequence[str],
    user_id: str,
    config: Optional[ExtractionConfig] = None,
    id_factory: Optional[BetSlipIdFactory] = None,
) -> ExtractionBatch:
    """Assemble records from a flat token stream (degenerate mode)."""
    assembler = RecordAssembler(user_id, config=config, id_factory=id_factory)
    assembler.feed_tokens(tokens)
    batch = assembler.finish()
    logger.info(
        "Assembled %d single bets, %d parlays with %d legs from %d tokens",
        len(batch.single_bets),
        len(batch.parlay_headers),
        len(batch.parlay_legs),
        len(tokens),
    )
    return batch
