"""
Cell normalization: raw upload bytes -> rows of string cells.

Sportsbook exports arrive as .xlsx/.xls workbooks, SpreadsheetML 2003 XML
documents or loosely delimited text. No single reader copes with all of
them, so normalization runs an ordered chain of strategies and keeps the
first one that yields at least one non-blank row:

1. grid      - the sheet's own cell grid (pandas / SpreadsheetML parse)
2. delimited - sheet rendered to delimited text, re-split
3. cells     - cell-by-cell scan keyed on A1-style coordinates (openpyxl)
4. markup    - regex scan of <Row>/<Data> markup, then plain lines

Each strategy guards itself: an exception means "no rows" and the chain
moves on.
"""
from __future__ import annotations

import csv
import html
import io
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.cell import column_index_from_string, coordinate_from_string

from betsheet.classify import is_blank_row, is_header_row
from betsheet.config import ExtractionConfig
from betsheet.errors import NoDataExtracted, UnreadableSource
from betsheet.io.sniff import ZIP_MAGIC, decode_text, detect_file_type, is_workbook

logger = logging.getLogger(__name__)

Rows = List[List[str]]

ROW_MARKUP_RE = re.compile(r"<(?:ss:)?Row\b[^>]*>(.*?)</(?:ss:)?Row>", re.DOTALL | re.IGNORECASE)
DATA_MARKUP_RE = re.compile(r"<(?:ss:)?Data\b[^>]*>(.*?)</(?:ss:)?Data>", re.DOTALL | re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")

LINE_DELIMITERS = (",", "\t", "|")


@dataclass
class SourceContext:
    """What every strategy gets: the bytes, their sniffed type and the config."""

    data: bytes
    file_type: str
    config: ExtractionConfig
    _text: Optional[str] = None

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = decode_text(self.data, self.config.encodings)
        return self._text


@dataclass
class NormalizedSheet:
    rows: Rows
    strategy: str
    file_type: str
    header: Optional[List[str]] = None
    attempts: List[str] = field(default_factory=list)

    @property
    def tokens(self) -> List[str]:
        """All cells flattened in reading order."""
        return [cell for row in self.rows for cell in row]

    def is_degenerate(self, min_cells: int) -> bool:
        """True when no row is wide enough to be read as a record."""
        return not any(len(row) >= min_cells for row in self.rows)


# ============================================================================
# Cell helpers
# ============================================================================

def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if isinstance(value, (datetime, date)):
        return "" if pd.isna(value) else value.isoformat()
    return str(value).strip()


def _clean_rows(rows: List[List[Any]]) -> Rows:
    cleaned = [[_cell_text(c) for c in row] for row in rows]
    return [row for row in cleaned if not is_blank_row(row)]


def _frame_rows(df: pd.DataFrame) -> Rows:
    return _clean_rows(df.fillna("").values.tolist())


def _read_sheet(ctx: SourceContext) -> pd.DataFrame:
    return pd.read_excel(
        io.BytesIO(ctx.data),
        sheet_name=ctx.config.sheet_index,
        header=None,
        dtype=str,
    )


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _ss_index(elem: ET.Element) -> Optional[int]:
    for key, value in elem.attrib.items():
        if _local(key) == "Index":
            try:
                return int(value)
            except ValueError:
                return None
    return None


# ============================================================================
# Strategy 1: declared cell grid
# ============================================================================

def _spreadsheetml_rows(text: str, sheet_index: int) -> Rows:
    """Parse SpreadsheetML 2003, honoring ss:Index column skips."""
    root = ET.fromstring(text.lstrip("\ufeff"))
    worksheets = [el for el in root.iter() if _local(el.tag) == "Worksheet"]
    scope = worksheets[sheet_index] if len(worksheets) > sheet_index else root

    rows: List[List[str]] = []
    for row_el in (el for el in scope.iter() if _local(el.tag) == "Row"):
        cells: List[str] = []
        for cell_el in (el for el in row_el if _local(el.tag) == "Cell"):
            index = _ss_index(cell_el)
            if index is not None:
                while len(cells) < index - 1:
                    cells.append("")
            data_el = next((el for el in cell_el if _local(el.tag) == "Data"), None)
            cells.append("" if data_el is None else "".join(data_el.itertext()).strip())
        rows.append(cells)
    return _clean_rows(rows)


def grid_rows(ctx: SourceContext) -> Optional[Rows]:
    if ctx.file_type == "xml":
        return _spreadsheetml_rows(ctx.text, ctx.config.sheet_index)
    if ctx.file_type == "excel":
        return _frame_rows(_read_sheet(ctx))
    df = pd.read_csv(
        io.StringIO(ctx.text),
        header=None,
        dtype=str,
        keep_default_na=False,
        sep=None,
        engine="python",
        skip_blank_lines=True,
    )
    return _frame_rows(df)


# ============================================================================
# Strategy 2: delimited text
# ============================================================================

def _sniff_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=",\t|;").delimiter
    except csv.Error:
        return ","


def delimited_rows(ctx: SourceContext) -> Optional[Rows]:
    if ctx.file_type == "xml":
        return None
    if ctx.file_type == "excel":
        text = _read_sheet(ctx).to_csv(index=False, header=False)
        delimiter = ","
    else:
        text = ctx.text
        delimiter = _sniff_delimiter(text[:4096])
    return _clean_rows(list(csv.reader(io.StringIO(text), delimiter=delimiter)))


# ============================================================================
# Strategy 3: cell references
# ============================================================================

def cell_reference_rows(ctx: SourceContext) -> Optional[Rows]:
    """Rebuild rows from A1-style coordinates; handles sparse sheets."""
    if not ctx.data.startswith(ZIP_MAGIC):
        return None

    workbook = load_workbook(io.BytesIO(ctx.data), data_only=True)
    try:
        sheet = workbook.worksheets[ctx.config.sheet_index]
        grid: Dict[int, Dict[int, str]] = {}
        for row in sheet.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                column_letter, row_number = coordinate_from_string(cell.coordinate)
                column = column_index_from_string(column_letter) - 1
                grid.setdefault(row_number, {})[column] = _cell_text(cell.value)
    finally:
        workbook.close()

    rows: List[List[str]] = []
    for row_number in sorted(grid):
        cells = grid[row_number]
        width = max(cells) + 1
        rows.append([cells.get(col, "") for col in range(width)])
    return _clean_rows(rows)


# ============================================================================
# Strategy 4: markup scan, then plain lines
# ============================================================================

def _split_line(line: str) -> List[str]:
    for delimiter in LINE_DELIMITERS:
        if delimiter in line:
            return [cell.strip() for cell in line.split(delimiter)]
    return [line.strip()]


def markup_rows(ctx: SourceContext) -> Optional[Rows]:
    text = ctx.text
    rows: List[List[str]] = []
    for row_match in ROW_MARKUP_RE.finditer(text):
        cells = [
            html.unescape(TAG_RE.sub("", cell_match.group(1))).strip()
            for cell_match in DATA_MARKUP_RE.finditer(row_match.group(1))
        ]
        if cells:
            rows.append(cells)

    rows = _clean_rows(rows)
    if rows or is_workbook(ctx.data):
        return rows

    logger.debug("No row markup found; splitting plain lines")
    return _clean_rows([_split_line(line) for line in text.splitlines() if line.strip()])


STRATEGIES: List[Tuple[str, Callable[[SourceContext], Optional[Rows]]]] = [
    ("grid", grid_rows),
    ("delimited", delimited_rows),
    ("cells", cell_reference_rows),
    ("markup", markup_rows),
]


def normalize_cells(data: bytes, config: Optional[ExtractionConfig] = None) -> NormalizedSheet:
    """
    Turn an uploaded buffer into rows of string cells.

    Parameters
    ----------
    data : bytes
        Raw upload (workbook, SpreadsheetML XML or delimited text)
    config : Optional[ExtractionConfig]
        Encodings, sheet index and header detection settings

    Returns
    -------
    NormalizedSheet
        Non-blank rows (header removed when detected) plus the name of the
        strategy that produced them

    Raises
    ------
    UnreadableSource
        If ``data`` is empty or not bytes
    NoDataExtracted
        If every strategy yields zero rows
    """
    config = config or ExtractionConfig()
    if not isinstance(data, (bytes, bytearray)):
        raise UnreadableSource(f"Expected a bytes buffer, got {type(data).__name__}")
    if not data:
        raise UnreadableSource("Uploaded file is empty")

    ctx = SourceContext(data=bytes(data), file_type=detect_file_type(bytes(data)), config=config)
    logger.debug("Detected file type: %s", ctx.file_type)

    attempts: List[str] = []
    for name, strategy in STRATEGIES:
        try:
            rows = strategy(ctx)
        except Exception as e:
            logger.debug("Strategy %s failed: %s", name, e)
            attempts.append(f"{name}: {type(e).__name__}")
            continue

        if not rows:
            attempts.append(f"{name}: no rows")
            continue

        logger.info("Strategy %s yielded %d rows (%s source)", name, len(rows), ctx.file_type)
        header = None
        if config.detect_header and is_header_row(rows[0]):
            header = rows[0]
            rows = rows[1:]
        return NormalizedSheet(
            rows=rows,
            strategy=name,
            file_type=ctx.file_type,
            header=header,
            attempts=attempts,
        )

    logger.warning("No rows extracted from %s source (%s)", ctx.file_type, "; ".join(attempts))
    raise NoDataExtracted(
        f"Failed to extract any data from the file ({ctx.file_type}); "
        f"attempts: {'; '.join(attempts)}"
    )
