from __future__ import annotations


class BetsheetError(Exception):
    """Base class for extraction failures that abort a whole file."""


class UnreadableSource(BetsheetError):
    """The supplied buffer is empty or not bytes."""


class NoDataExtracted(BetsheetError):
    """Every cell-normalizer strategy yielded zero rows."""
