"""
Betsheet

Parses sportsbook bet-history exports (workbooks, SpreadsheetML XML,
delimited text) into normalized records:
- Cell normalization under betsheet.io
- Row classification and record assembly (betsheet.classify, betsheet.assembler)
- Team / player / prop aggregation (betsheet.aggregate)
- Entry points in betsheet.pipeline

Usage:
    python -m betsheet.cli exports/bets.xlsx --user-id u_123
"""
from betsheet.errors import BetsheetError, NoDataExtracted, UnreadableSource
from betsheet.models import (
    ExtractionBatch,
    ExtractionSummary,
    ParlayHeader,
    ParlayLeg,
    PlayerStat,
    PropStat,
    SingleBet,
    TeamStat,
)
from betsheet.pipeline import extract_betting_data, process_betting_data

__all__ = [
    # Errors
    "BetsheetError",
    "NoDataExtracted",
    "UnreadableSource",
    # Records
    "ExtractionBatch",
    "ExtractionSummary",
    "ParlayHeader",
    "ParlayLeg",
    "PlayerStat",
    "PropStat",
    "SingleBet",
    "TeamStat",
    # Entry points
    "extract_betting_data",
    "process_betting_data",
]
