"""
Constants for sportsbook bet-history ingestion.

This module defines the column layouts, header aliases, date patterns and
outcome keywords shared by the classifier, assembler and aggregation engine.
"""
from __future__ import annotations

import re
from typing import Dict, List, Pattern

# Rows with fewer cells than this carry too little information to guess at
MIN_ROW_CELLS = 5

# Observed sportsbook bet-slip id width
BET_ID_LENGTH = 19

# Bet-type values that mark a parlay header (compared upper-cased)
MULTIPLE_MARKER = "MULTIPLE"
PARLAY_MARKER = "PARLAY"

# Separators used when deriving aggregates from free text
TEAM_SEPARATORS = (" vs ", " @ ")
PLAYER_PROP_SEPARATOR = " - "
LEG_COUNT_DELIMITER = ","

# ============================================================================
# Column layout
# ============================================================================

# Canonical column names -> positional index when the export has no header
DEFAULT_COLUMN_POSITIONS: Dict[str, int] = {
    "Date Placed": 0,
    "Status": 1,
    "League": 2,
    "Match": 3,
    "Bet Type": 4,
    "Market": 5,
    "Selection": 6,
    "Price": 7,
    "Wager": 8,
    "Winnings": 9,
    "Payout": 10,
    "Result": 11,
    "Bet Slip ID": 12,
    "Potential Payout": 13,
}

CANONICAL_COLUMNS: List[str] = list(DEFAULT_COLUMN_POSITIONS)

# Alternative header labels seen in different export dialects
HEADER_ALIASES: Dict[str, List[str]] = {
    "Date Placed": ["Date", "PlacedDate", "Bet Date", "Transaction Date"],
    "Status": ["Outcome", "State"],
    "League": ["Sport", "Sports League", "Category"],
    "Match": ["Event", "Game", "Matchup"],
    "Bet Type": ["Type", "Wager Type", "Selection Type"],
    "Market": ["Pick", "Bet On", "Option"],
    "Selection": [],
    "Price": ["Odds", "Line", "Price Odds"],
    "Wager": ["Stake", "Amount", "Bet Amount"],
    "Winnings": ["Profit", "Net", "PL", "Returns"],
    "Payout": ["Total Return", "Gross Payout"],
    "Potential Payout": ["To Win", "Potential Win"],
    "Result": [],
    "Bet Slip ID": ["Bet ID", "Slip ID", "Ticket ID"],
}

# A header must resolve at least this many canonical columns to replace the default layout
MIN_RESOLVED_HEADER_COLUMNS = 3

# Tokens whose presence in the first row marks it as a header
HEADER_TOKENS = ("date", "status", "league", "match")
MIN_HEADER_TOKEN_HITS = 2

# ============================================================================
# Dates
# ============================================================================

MONTHS: Dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

# "9 Feb 2025 @ 4:08pm"
SPORTSBOOK_DATE_RE: Pattern[str] = re.compile(
    r"^(\d{1,2})\s+([A-Za-z]{3,})\s+(\d{4})\s+@\s+(\d{1,2}):(\d{2})\s*([ap]m)",
    re.IGNORECASE,
)

# "09.02.2025" is day-first; every other numeric layout is month-first
DAY_FIRST_DATE_RE: Pattern[str] = re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}")

DATE_PATTERNS: List[Pattern[str]] = [
    SPORTSBOOK_DATE_RE,
    # 02/09/2025 16:08, 2/9/25 4:08 PM
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}(?:\s+\d{1,2}:\d{2}\s*(?:am|pm)?)?", re.IGNORECASE),
    # 2025-02-09T16:08:00, 2025-02-09 16:08
    re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2})?"),
    # February 9, 2025
    re.compile(r"^[A-Za-z]{3,}\.?\s+\d{1,2},\s+\d{4}"),
    # 9-Feb-2025
    re.compile(r"^\d{1,2}-[A-Za-z]{3}-\d{4}"),
    DAY_FIRST_DATE_RE,
]

# ============================================================================
# Outcomes
# ============================================================================

# Checked in order; the first matching substring wins
WIN_KEYWORDS = ("won", "win")
LOSS_KEYWORDS = ("los",)
PUSH_KEYWORDS = ("push",)

# Synthesized id prefixes for the sequential strategy
GENERATED_PARLAY_PREFIX = "generated-parlay-"
GENERATED_SINGLE_PREFIX = "generated-single-"
