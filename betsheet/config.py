from __future__ import annotations

import json
import os
import pathlib
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List

import yaml

from betsheet.constants import MIN_ROW_CELLS

BET_ID_STRATEGIES = ("timestamp", "sequential")


@dataclass
class ExtractionConfig:
    min_cells: int = MIN_ROW_CELLS
    detect_header: bool = True
    bet_id_strategy: str = "timestamp"  # "timestamp" or "sequential"
    encodings: List[str] = field(
        default_factory=lambda: ["utf-8-sig", "utf-16", "cp1252", "latin-1"]
    )
    sheet_index: int = 0
    flat_token_fallback: bool = True

    def __post_init__(self) -> None:
        if self.bet_id_strategy not in BET_ID_STRATEGIES:
            raise ValueError(
                f"Unsupported bet_id_strategy: {self.bet_id_strategy!r} "
                f"(expected one of {BET_ID_STRATEGIES})"
            )
        if self.min_cells < 1:
            raise ValueError(f"min_cells must be >= 1, got {self.min_cells}")
        if not self.encodings:
            raise ValueError("encodings must list at least one candidate")

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ExtractionConfig":
        known = {f.name for f in fields(ExtractionConfig)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown extraction config keys: {sorted(unknown)}")
        return ExtractionConfig(**data)

    @staticmethod
    def from_env(base: "ExtractionConfig | None" = None) -> "ExtractionConfig":
        """
        Apply BETSHEET_* environment overrides on top of ``base``.

        BETSHEET_MIN_CELLS, BETSHEET_BET_ID_STRATEGY, BETSHEET_DETECT_HEADER
        """
        data = dict(vars(base or ExtractionConfig()))
        if "BETSHEET_MIN_CELLS" in os.environ:
            data["min_cells"] = int(os.environ["BETSHEET_MIN_CELLS"])
        if "BETSHEET_BET_ID_STRATEGY" in os.environ:
            data["bet_id_strategy"] = os.environ["BETSHEET_BET_ID_STRATEGY"].strip().lower()
        if "BETSHEET_DETECT_HEADER" in os.environ:
            data["detect_header"] = os.environ["BETSHEET_DETECT_HEADER"].strip().lower() in {
                "1", "true", "yes", "on",
            }
        return ExtractionConfig(**data)


def _load_json(path: pathlib.Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _load_yaml(path: pathlib.Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_extraction_config(path: str | pathlib.Path) -> ExtractionConfig:
    """
    Load an ExtractionConfig from a JSON or YAML file.

    Keys mirror the dataclass fields; omitted keys keep their defaults.
    """
    p = pathlib.Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    if p.suffix.lower() in {".json"}:
        raw = _load_json(p)
    elif p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        raise ValueError(f"Unsupported config extension: {p.suffix}")

    return ExtractionConfig.from_dict(raw)
