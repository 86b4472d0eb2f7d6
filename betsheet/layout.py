"""
Column layout resolution.

Exports either carry a header row (whose labels vary by sportsbook and
export dialect) or none at all. ``ColumnLayout`` maps canonical column names
to cell positions so the classifier and assembler can read a row by name.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from betsheet.constants import (
    CANONICAL_COLUMNS,
    DEFAULT_COLUMN_POSITIONS,
    HEADER_ALIASES,
    MIN_RESOLVED_HEADER_COLUMNS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnLayout:
    """Canonical column name -> 0-based cell index."""

    positions: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_COLUMN_POSITIONS))
    source: str = "positional"

    def index_of(self, column: str) -> Optional[int]:
        return self.positions.get(column)

    def cell(self, row: Sequence[str], column: str) -> str:
        """Trimmed text of ``column`` in ``row``; empty string when absent."""
        idx = self.positions.get(column)
        if idx is None or idx >= len(row):
            return ""
        value = row[idx]
        return "" if value is None else str(value).strip()

    @classmethod
    def default(cls) -> "ColumnLayout":
        return cls()

    @classmethod
    def from_header(cls, header: Sequence[str]) -> Optional["ColumnLayout"]:
        """
        Build a layout from a header row, resolving alias labels.

        Returns None when too few canonical columns resolve for the header to
        be trusted over the positional default.
        """
        labels: Dict[str, int] = {}
        for idx, label in enumerate(header):
            key = str(label).strip().lower()
            if key and key not in labels:
                labels[key] = idx

        resolved: Dict[str, int] = {}
        for column in CANONICAL_COLUMNS:
            candidates: List[str] = [column] + HEADER_ALIASES.get(column, [])
            for candidate in candidates:
                idx = labels.get(candidate.lower())
                if idx is not None:
                    resolved[column] = idx
                    break

        if len(resolved) < MIN_RESOLVED_HEADER_COLUMNS:
            logger.debug(
                "Header resolved only %d columns (%s); keeping positional layout",
                len(resolved),
                sorted(resolved),
            )
            return None

        # Some dialects head the outcome column "Result" and carry no Status
        if "Status" not in resolved and "Result" in resolved:
            resolved["Status"] = resolved["Result"]

        logger.debug("Resolved header columns: %s", resolved)
        return cls(positions=resolved, source="header")
