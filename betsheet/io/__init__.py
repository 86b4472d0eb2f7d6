"""
Ingestion layer for sportsbook exports.

Responsibilities:
- Sniff the upload's format and decode text with candidate encodings
- Normalize workbook / XML / delimited sources into rows of string cells
"""

from .sniff import detect_file_type, decode_text
from .normalizer import NormalizedSheet, normalize_cells

__all__ = [
    "detect_file_type",
    "decode_text",
    "NormalizedSheet",
    "normalize_cells",
]
