"""
Team / player / prop aggregation.

Aggregates are derived while records are assembled. Single bets and parlay
legs contribute; parlay headers do not, because a leg (not the slip) is what
maps to one game result.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from betsheet.constants import (
    LOSS_KEYWORDS,
    PLAYER_PROP_SEPARATOR,
    PUSH_KEYWORDS,
    TEAM_SEPARATORS,
    WIN_KEYWORDS,
)
from betsheet.models import (
    Outcome,
    ParlayLeg,
    PlayerStat,
    PropStat,
    SingleBet,
    TeamStat,
)


def classify_outcome(text: Optional[str]) -> Outcome:
    """Case-insensitive substring match: win, then loss, then push, else pending."""
    lowered = (text or "").lower()
    if any(k in lowered for k in WIN_KEYWORDS):
        return Outcome.WIN
    if any(k in lowered for k in LOSS_KEYWORDS):
        return Outcome.LOSS
    if any(k in lowered for k in PUSH_KEYWORDS):
        return Outcome.PUSH
    return Outcome.PENDING


def extract_teams(match: Optional[str]) -> List[str]:
    """
    Split a match description into team names.

    >>> extract_teams("Lakers vs Celtics")
    ['Lakers', 'Celtics']
    >>> extract_teams("Chiefs @ Bills")
    ['Chiefs', 'Bills']
    """
    if not match:
        return []
    trimmed = match.strip()
    for sep in TEAM_SEPARATORS:
        if sep in trimmed:
            return [team.strip() for team in trimmed.split(sep) if team.strip()]
    return []


def extract_player_and_prop(market: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a prop market into (player, prop type).

    >>> extract_player_and_prop("LeBron James - Points")
    ('LeBron James', 'Points')
    >>> extract_player_and_prop("Moneyline")
    (None, None)
    """
    if not market or PLAYER_PROP_SEPARATOR not in market:
        return None, None
    player, _, prop_type = market.partition(PLAYER_PROP_SEPARATOR)
    return (player.strip() or None), (prop_type.strip() or None)


class StatsAggregator:
    """
    Rolling counters for one extraction run.

    Keys are (user_id, name); nothing is shared across runs.
    """

    def __init__(self) -> None:
        self._teams: Dict[Tuple[str, str], TeamStat] = {}
        self._players: Dict[Tuple[str, str], PlayerStat] = {}
        self._props: Dict[Tuple[str, str], PropStat] = {}

    def add_single(self, bet: SingleBet) -> None:
        self._add(bet.user_id, bet.match, bet.market, bet.league, bet.result or bet.status)

    def add_leg(self, leg: ParlayLeg, user_id: str) -> None:
        self._add(user_id, leg.match, leg.market, leg.league, leg.status)

    def _add(
        self,
        user_id: str,
        match: Optional[str],
        market: Optional[str],
        league: Optional[str],
        outcome_text: Optional[str],
    ) -> None:
        outcome = classify_outcome(outcome_text)

        for team in extract_teams(match):
            key = (user_id, team)
            stat = self._teams.get(key)
            if stat is None:
                stat = self._teams[key] = TeamStat(user_id=user_id, team=team)
            if league:
                stat.league = league
            stat.record(outcome)

        player, prop_type = extract_player_and_prop(market)
        if player:
            key = (user_id, player)
            pstat = self._players.get(key)
            if pstat is None:
                pstat = self._players[key] = PlayerStat(user_id=user_id, player=player)
            pstat.add_prop_type(prop_type)
            pstat.record(outcome)

        if prop_type:
            key = (user_id, prop_type)
            prop = self._props.get(key)
            if prop is None:
                prop = self._props[key] = PropStat(user_id=user_id, prop_type=prop_type)
            prop.record(outcome)

    def team_stats(self) -> List[TeamStat]:
        return list(self._teams.values())

    def player_stats(self) -> List[PlayerStat]:
        return list(self._players.values())

    def prop_stats(self) -> List[PropStat]:
        return list(self._props.values())
