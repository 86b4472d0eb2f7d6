"""
Final pass before a batch leaves the extractor: every date-typed field is
either a valid datetime or None.
"""
from __future__ import annotations

import logging
from typing import Iterable

from betsheet.models import ExtractionBatch
from betsheet.parsers import is_valid_date

logger = logging.getLogger(__name__)

DATE_FIELDS = {
    "single_bets": ("date_placed",),
    "parlay_headers": ("date_placed",),
    "parlay_legs": ("game_date",),
}


def _sanitize_records(records: Iterable[object], field_names: Iterable[str]) -> int:
    fixed = 0
    for record in records:
        for name in field_names:
            value = getattr(record, name, None)
            if value is not None and not is_valid_date(value):
                setattr(record, name, None)
                fixed += 1
    return fixed


def sanitize_batch(batch: ExtractionBatch) -> ExtractionBatch:
    """Coerce invalid date fields to None in place; returns the same batch."""
    fixed = 0
    for list_name, field_names in DATE_FIELDS.items():
        fixed += _sanitize_records(getattr(batch, list_name), field_names)
    if fixed:
        logger.warning("Sanitizer nulled %d invalid date fields", fixed)
    return batch
