"""
Schema definitions for the extracted output tables.

Each schema lists the table's columns in output order with their pandas
dtype, plus the key columns. Table names match the relational layout the
storage layer persists into (single_bets, parlay_headers, parlay_legs,
team_stats, player_stats, prop_stats); uniqueness of the stat keys is
application-level only.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Set


@dataclass
class TableSchema:
    """Schema definition for an output table."""

    table_name: str
    columns: OrderedDict[str, str]  # column_name -> dtype
    key: List[str] = field(default_factory=list)
    nullable: Set[str] = field(default_factory=set)


_BET_COLUMNS = [
    ("user_id", "string"),
    ("date_placed", "datetime64[ns]"),
    ("status", "string"),
    ("league", "string"),
    ("match", "string"),
    ("bet_type", "string"),
    ("market", "string"),
    ("selection", "string"),
    ("price", "float64"),
    ("wager", "float64"),
    ("winnings", "float64"),
    ("payout", "float64"),
    ("result", "string"),
    ("bet_slip_id", "string"),
]

_COUNTER_COLUMNS = [
    ("total_bets", "int64"),
    ("wins", "int64"),
    ("losses", "int64"),
    ("pushes", "int64"),
    ("pending", "int64"),
]

SINGLE_BETS = TableSchema(
    table_name="single_bets",
    columns=OrderedDict(_BET_COLUMNS),
    key=["user_id", "bet_slip_id"],
    nullable={c for c, _ in _BET_COLUMNS} - {"user_id", "bet_slip_id"},
)

PARLAY_HEADERS = TableSchema(
    table_name="parlay_headers",
    columns=OrderedDict(_BET_COLUMNS + [("potential_payout", "float64")]),
    key=["user_id", "bet_slip_id"],
    nullable=({c for c, _ in _BET_COLUMNS} | {"potential_payout"}) - {"user_id", "bet_slip_id"},
)

PARLAY_LEGS = TableSchema(
    table_name="parlay_legs",
    columns=OrderedDict([
        ("parlay_id", "string"),
        ("leg_number", "int64"),
        ("status", "string"),
        ("league", "string"),
        ("match", "string"),
        ("market", "string"),
        ("selection", "string"),
        ("price", "float64"),
        ("game_date", "datetime64[ns]"),
    ]),
    key=["parlay_id", "leg_number"],
    nullable={"status", "league", "match", "market", "selection", "price", "game_date"},
)

TEAM_STATS = TableSchema(
    table_name="team_stats",
    columns=OrderedDict([("user_id", "string"), ("team", "string"), ("league", "string")] + _COUNTER_COLUMNS),
    key=["user_id", "team"],
    nullable={"league"},
)

PLAYER_STATS = TableSchema(
    table_name="player_stats",
    columns=OrderedDict([("user_id", "string"), ("player", "string"), ("prop_types", "object")] + _COUNTER_COLUMNS),
    key=["user_id", "player"],
)

PROP_STATS = TableSchema(
    table_name="prop_stats",
    columns=OrderedDict([("user_id", "string"), ("prop_type", "string")] + _COUNTER_COLUMNS),
    key=["user_id", "prop_type"],
)

# Batch attribute -> schema
OUTPUT_TABLES: Dict[str, TableSchema] = {
    "single_bets": SINGLE_BETS,
    "parlay_headers": PARLAY_HEADERS,
    "parlay_legs": PARLAY_LEGS,
    "team_stats": TEAM_STATS,
    "player_stats": PLAYER_STATS,
    "prop_stats": PROP_STATS,
}
