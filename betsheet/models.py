from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    PENDING = "pending"


@dataclass
class SingleBet:
    user_id: str
    date_placed: Optional[datetime] = None
    status: Optional[str] = None
    league: Optional[str] = None
    match: Optional[str] = None
    bet_type: Optional[str] = None
    market: Optional[str] = None
    selection: Optional[str] = None
    price: Optional[float] = None
    wager: Optional[float] = None
    winnings: Optional[float] = None
    payout: Optional[float] = None
    result: Optional[str] = None
    bet_slip_id: Optional[str] = None


@dataclass
class ParlayHeader(SingleBet):
    potential_payout: Optional[float] = None


@dataclass
class ParlayLeg:
    # Provisional reference: the owning header's bet_slip_id until persisted
    parlay_id: str
    leg_number: int
    status: Optional[str] = None
    league: Optional[str] = None
    match: Optional[str] = None
    market: Optional[str] = None
    selection: Optional[str] = None
    price: Optional[float] = None
    game_date: Optional[datetime] = None


class OutcomeTally:
    """Counter behaviour shared by the stat records."""

    total_bets: int
    wins: int
    losses: int
    pushes: int
    pending: int

    def record(self, outcome: Outcome) -> None:
        self.total_bets += 1
        if outcome is Outcome.WIN:
            self.wins += 1
        elif outcome is Outcome.LOSS:
            self.losses += 1
        elif outcome is Outcome.PUSH:
            self.pushes += 1
        else:
            self.pending += 1

    @property
    def is_consistent(self) -> bool:
        return self.total_bets == self.wins + self.losses + self.pushes + self.pending


@dataclass
class TeamStat(OutcomeTally):
    user_id: str
    team: str
    league: Optional[str] = None
    total_bets: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    pending: int = 0


@dataclass
class PlayerStat(OutcomeTally):
    user_id: str
    player: str
    prop_types: List[str] = field(default_factory=list)
    total_bets: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    pending: int = 0

    def add_prop_type(self, prop_type: Optional[str]) -> None:
        if prop_type and prop_type not in self.prop_types:
            self.prop_types.append(prop_type)


@dataclass
class PropStat(OutcomeTally):
    user_id: str
    prop_type: str
    total_bets: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    pending: int = 0


@dataclass
class ExtractionStats:
    """Per-run diagnostics; none of these are errors."""

    rows_seen: int = 0
    rows_skipped: int = 0
    rows_unclassified: int = 0
    fields_degraded: int = 0
    orphan_legs: int = 0


@dataclass
class ExtractionBatch:
    """The six ordered output lists of one extraction call."""

    single_bets: List[SingleBet] = field(default_factory=list)
    parlay_headers: List[ParlayHeader] = field(default_factory=list)
    parlay_legs: List[ParlayLeg] = field(default_factory=list)
    team_stats: List[TeamStat] = field(default_factory=list)
    player_stats: List[PlayerStat] = field(default_factory=list)
    prop_stats: List[PropStat] = field(default_factory=list)
    stats: ExtractionStats = field(default_factory=ExtractionStats)

    @property
    def is_empty(self) -> bool:
        return not (self.single_bets or self.parlay_headers or self.parlay_legs)

    def legs_for(self, bet_slip_id: str) -> List[ParlayLeg]:
        return [leg for leg in self.parlay_legs if leg.parlay_id == bet_slip_id]

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "single_bets": [asdict(r) for r in self.single_bets],
            "parlay_headers": [asdict(r) for r in self.parlay_headers],
            "parlay_legs": [asdict(r) for r in self.parlay_legs],
            "team_stats": [asdict(r) for r in self.team_stats],
            "player_stats": [asdict(r) for r in self.player_stats],
            "prop_stats": [asdict(r) for r in self.prop_stats],
        }


@dataclass
class ExtractionSummary:
    success: bool
    single_bets_count: int = 0
    parlays_count: int = 0
    parlay_legs_count: int = 0
    team_stats_count: int = 0
    player_stats_count: int = 0
    prop_stats_count: int = 0
    error: Optional[str] = None

    @classmethod
    def from_batch(cls, batch: ExtractionBatch) -> "ExtractionSummary":
        return cls(
            success=True,
            single_bets_count=len(batch.single_bets),
            parlays_count=len(batch.parlay_headers),
            parlay_legs_count=len(batch.parlay_legs),
            team_stats_count=len(batch.team_stats),
            player_stats_count=len(batch.player_stats),
            prop_stats_count=len(batch.prop_stats),
        )

    @classmethod
    def failure(cls, error: str) -> "ExtractionSummary":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Result shape returned to the upload handler (camelCase keys)."""
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "singleBetsCount": self.single_bets_count,
            "parlaysCount": self.parlays_count,
            "parlayLegsCount": self.parlay_legs_count,
            "teamStatsCount": self.team_stats_count,
            "playerStatsCount": self.player_stats_count,
            "propStatsCount": self.prop_stats_count,
        }
