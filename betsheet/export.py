from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd

from betsheet.models import ExtractionBatch
from betsheet.schemas import OUTPUT_TABLES, TableSchema


def _to_frame(records: list, schema: TableSchema) -> pd.DataFrame:
    columns = list(schema.columns)
    if not records:
        return pd.DataFrame({c: pd.Series(dtype=d) for c, d in schema.columns.items()})

    df = pd.DataFrame([asdict(r) for r in records])
    for col, dtype in schema.columns.items():
        if col not in df.columns:
            df[col] = np.nan
        if dtype == "float64":
            df[col] = pd.to_numeric(df[col], errors="coerce")
        elif dtype.startswith("datetime64"):
            # Mixed naive/aware values are normalized to naive UTC
            df[col] = pd.to_datetime(df[col], errors="coerce", utc=True).dt.tz_localize(None)
        elif dtype == "string":
            df[col] = df[col].astype("string")
        elif dtype == "int64":
            df[col] = df[col].astype("int64")
        elif col == "prop_types":
            df[col] = df[col].apply(lambda v: "; ".join(v) if isinstance(v, list) else v)
    return df[columns]


def batch_to_frames(batch: ExtractionBatch) -> Dict[str, pd.DataFrame]:
    """
    One DataFrame per output table, columns ordered per ``betsheet.schemas``.

    PlayerStat prop types are joined with "; " so the frame writes flat.
    """
    return {
        name: _to_frame(getattr(batch, name), schema)
        for name, schema in OUTPUT_TABLES.items()
    }


def write_batch_csv(batch: ExtractionBatch, output_dir: Path | str) -> Dict[str, Path]:
    """Write each output table to ``{output_dir}/{table}.csv``; returns the paths."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    written: Dict[str, Path] = {}
    for name, df in batch_to_frames(batch).items():
        path = out / f"{OUTPUT_TABLES[name].table_name}.csv"
        df.to_csv(path, index=False)
        written[name] = path
    return written
