from __future__ import annotations

import codecs
import logging
from typing import Sequence

logger = logging.getLogger(__name__)

XML_SIGNATURES = ("<?xml", "<ss:Workbook", "<x:xmpmeta")
OLE2_MAGIC = bytes([0xD0, 0xCF, 0x11, 0xE0, 0xA1, 0xB1, 0x1A, 0xE1])  # legacy .xls
ZIP_MAGIC = bytes([0x50, 0x4B, 0x03, 0x04])  # .xlsx

UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def is_workbook(data: bytes) -> bool:
    return data.startswith(OLE2_MAGIC) or data.startswith(ZIP_MAGIC)


def detect_file_type(data: bytes) -> str:
    """
    Detect the export format from the buffer's leading bytes.

    Returns one of "xml", "excel", "csv" or "unknown". The result only
    orders the normalizer's strategies; it never rejects a file.
    """
    if is_workbook(data):
        return "excel"

    head = data[:256].decode("utf-8", errors="ignore")
    if data.startswith(UTF16_BOMS):
        head = data[:512].decode("utf-16", errors="ignore")
    if any(sig in head for sig in XML_SIGNATURES):
        return "xml"

    lines = data[:1000].decode("utf-8", errors="ignore").split("\n")[:5]
    if len(lines) > 1:
        avg_commas = sum(line.count(",") for line in lines) / len(lines)
        if avg_commas > 3:
            return "csv"

    return "unknown"


def decode_text(data: bytes, encodings: Sequence[str]) -> str:
    """
    Decode ``data`` with the first candidate encoding that succeeds.

    UTF-16 candidates are only tried when the buffer carries a UTF-16 BOM,
    since almost any even-length byte string decodes as UTF-16. If every
    candidate fails the bytes are decoded as latin-1, which cannot fail.
    """
    has_utf16_bom = data.startswith(UTF16_BOMS)
    for encoding in encodings:
        if encoding.lower().replace("_", "-").startswith("utf-16") and not has_utf16_bom:
            continue
        try:
            return data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.debug("Decoding as %s failed", encoding)
            continue
    return data.decode("latin-1")
