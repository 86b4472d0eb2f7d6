"""
Consistency checks for an extracted batch.

Checks:
1. Leg contiguity: each parlay's leg numbers are exactly 1..N
2. Leg references: every leg points at a parlay header in the same batch
3. Outcome totals: total_bets == wins + losses + pushes + pending for every stat
4. Date safety: every date field is a valid datetime or None
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from betsheet.models import ExtractionBatch
from betsheet.parsers import is_valid_date


@dataclass
class ValidationResult:
    """Container for validation results."""
    passed: bool
    check_name: str
    message: str
    details: Optional[dict] = None


@dataclass
class ValidationReport:
    """Container for a complete validation report."""
    source: str
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failed_checks(self) -> List[ValidationResult]:
        return [r for r in self.results if not r.passed]

    def summary(self) -> str:
        """Return a summary string of the validation."""
        passed = sum(1 for r in self.results if r.passed)
        total = len(self.results)
        status = "PASSED" if self.all_passed else "FAILED"
        lines = [
            f"Validation Report: {self.source}",
            f"Status: {status} ({passed}/{total} checks passed)",
            "",
        ]
        for r in self.results:
            icon = "✓" if r.passed else "✗"
            lines.append(f"  {icon} {r.check_name}: {r.message}")
        return "\n".join(lines)


def validate_batch(batch: ExtractionBatch, source: str = "batch") -> ValidationReport:
    """
    Validate an extracted batch.

    Parameters
    ----------
    batch : ExtractionBatch
        Output of the extractor
    source : str
        Label for the report (typically the uploaded file name)

    Returns
    -------
    ValidationReport
        Validation results
    """
    report = ValidationReport(source=source)

    # Check 1: leg contiguity
    legs_by_parlay: Dict[str, List[int]] = defaultdict(list)
    for leg in batch.parlay_legs:
        legs_by_parlay[leg.parlay_id].append(leg.leg_number)

    gaps = {
        parlay_id: numbers
        for parlay_id, numbers in legs_by_parlay.items()
        if numbers != list(range(1, len(numbers) + 1))
    }
    report.results.append(ValidationResult(
        passed=not gaps,
        check_name="leg_contiguity",
        message=(
            f"{len(legs_by_parlay)} parlays with contiguous legs"
            if not gaps else f"Non-contiguous legs in {sorted(gaps)}"
        ),
        details={"gaps": gaps} if gaps else None,
    ))

    # Check 2: leg references
    header_ids = {h.bet_slip_id for h in batch.parlay_headers}
    orphans = sorted(set(legs_by_parlay) - header_ids)
    report.results.append(ValidationResult(
        passed=not orphans,
        check_name="leg_references",
        message="All legs reference a parlay header" if not orphans else f"Unknown parlays: {orphans}",
    ))

    # Check 3: outcome totals
    inconsistent = [
        f"{type(stat).__name__}:{getattr(stat, 'team', None) or getattr(stat, 'player', None) or getattr(stat, 'prop_type', None)}"
        for stat in [*batch.team_stats, *batch.player_stats, *batch.prop_stats]
        if not stat.is_consistent
    ]
    report.results.append(ValidationResult(
        passed=not inconsistent,
        check_name="outcome_totals",
        message="All stat totals match their outcome counters" if not inconsistent
        else f"Inconsistent: {', '.join(inconsistent)}",
    ))

    # Check 4: date safety
    bad_dates = 0
    for record in [*batch.single_bets, *batch.parlay_headers]:
        if record.date_placed is not None and not is_valid_date(record.date_placed):
            bad_dates += 1
    for leg in batch.parlay_legs:
        if leg.game_date is not None and not is_valid_date(leg.game_date):
            bad_dates += 1
    report.results.append(ValidationResult(
        passed=bad_dates == 0,
        check_name="date_safety",
        message="All dates valid or null" if bad_dates == 0 else f"{bad_dates} invalid date fields",
    ))

    return report
