"""
Public entry points.

``extract_betting_data`` runs normalize -> assemble/aggregate -> sanitize and
raises ``BetsheetError`` only when the file as a whole is unusable.
``process_betting_data`` wraps it for the upload handler and never raises.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from betsheet.assembler import BetSlipIdFactory, assemble_rows, assemble_tokens
from betsheet.classify import is_date_like
from betsheet.config import ExtractionConfig
from betsheet.io.normalizer import NormalizedSheet, normalize_cells
from betsheet.layout import ColumnLayout
from betsheet.models import ExtractionBatch, ExtractionSummary
from betsheet.sanitize import sanitize_batch

logger = logging.getLogger(__name__)


def _layout_for(sheet: NormalizedSheet) -> ColumnLayout:
    if sheet.header is not None:
        layout = ColumnLayout.from_header(sheet.header)
        if layout is not None:
            return layout
    return ColumnLayout.default()


def extract_from_sheet(
    sheet: NormalizedSheet,
    user_id: str,
    config: Optional[ExtractionConfig] = None,
    id_factory: Optional[BetSlipIdFactory] = None,
) -> ExtractionBatch:
    """Assemble and sanitize records from already-normalized cells."""
    config = config or ExtractionConfig()
    id_factory = id_factory or BetSlipIdFactory(config.bet_id_strategy)

    if (
        config.flat_token_fallback
        and sheet.is_degenerate(config.min_cells)
        and any(is_date_like(t) for t in sheet.tokens)
    ):
        logger.info("No row reaches %d cells; assembling from flat tokens", config.min_cells)
        batch = assemble_tokens(sheet.tokens, user_id, config=config, id_factory=id_factory)
    else:
        batch = assemble_rows(
            sheet.rows,
            user_id,
            layout=_layout_for(sheet),
            config=config,
            id_factory=id_factory,
        )

    return sanitize_batch(batch)


def extract_betting_data(
    data: bytes,
    user_id: str,
    config: Optional[ExtractionConfig] = None,
    id_factory: Optional[BetSlipIdFactory] = None,
) -> Tuple[ExtractionBatch, NormalizedSheet]:
    """
    Extract bets, parlays, legs and aggregates from an uploaded export.

    Parameters
    ----------
    data : bytes
        Raw upload (.xlsx, .xls, SpreadsheetML XML or delimited text)
    user_id : str
        Opaque owner id stamped on every record
    config : Optional[ExtractionConfig]
        Extraction settings; defaults apply when omitted
    id_factory : Optional[BetSlipIdFactory]
        Source of synthesized bet-slip ids (injectable for tests)

    Returns
    -------
    Tuple[ExtractionBatch, NormalizedSheet]
        The sanitized batch and the normalized cells it came from

    Raises
    ------
    UnreadableSource
        If ``data`` is empty or not bytes
    NoDataExtracted
        If no normalization strategy recovered any rows
    """
    config = config or ExtractionConfig()
    sheet = normalize_cells(data, config)
    batch = extract_from_sheet(sheet, user_id, config=config, id_factory=id_factory)
    logger.info(
        "Extracted %d single bets, %d parlays with %d legs via %s strategy",
        len(batch.single_bets),
        len(batch.parlay_headers),
        len(batch.parlay_legs),
        sheet.strategy,
    )
    return batch, sheet


def process_betting_data(
    data: bytes,
    user_id: str,
    config: Optional[ExtractionConfig] = None,
) -> Tuple[ExtractionSummary, Optional[ExtractionBatch]]:
    """
    Upload-handler boundary: extract and summarize, never raise.

    Returns the summary plus the batch (None on failure) for the storage
    collaborator.
    """
    try:
        batch, _ = extract_betting_data(data, user_id, config=config)
    except Exception as e:
        logger.exception("Error processing betting data")
        return ExtractionSummary.failure(str(e) or type(e).__name__), None

    return ExtractionSummary.from_batch(batch), batch
