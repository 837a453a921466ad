"""
Comparison engine — wires the resolver and the interval calculator
together for one baseline plus N compared projects.

Pure: takes records, returns results. The first result is always the
baseline and is the only one flagged as such; its intervals carry no
delta.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from app.services.date_resolver import (
    DocumentRecord,
    ProjectRecord,
    ResolvedDate,
    build_date_table,
)
from app.services.intervals import IntervalResult, compute_intervals
from app.services.timeline import COMPARISON_PAIRS, TOTAL_PAIR_ID, ComparisonPair


@dataclass(frozen=True)
class ComparisonResult:
    project: ProjectRecord
    dates: dict[int, ResolvedDate]
    intervals: dict[str, IntervalResult]
    is_baseline: bool

    def interval(self, pair_id: str) -> Optional[IntervalResult]:
        return self.intervals.get(pair_id)

    def complete_days(self, pair_id: str) -> Optional[int]:
        """Days of `pair_id` if that interval is complete, else None."""
        result = self.intervals.get(pair_id)
        if result is None or not result.is_complete:
            return None
        return result.days

    @property
    def total_days(self) -> Optional[int]:
        return self.complete_days(TOTAL_PAIR_ID)


def build_results(
    baseline: ProjectRecord,
    compared: Sequence[ProjectRecord],
    documents: Sequence[DocumentRecord],
    pairs: Sequence[ComparisonPair] = COMPARISON_PAIRS,
) -> list[ComparisonResult]:
    baseline_dates = build_date_table(baseline, documents)
    results = [
        ComparisonResult(
            project=baseline,
            dates=baseline_dates,
            intervals=compute_intervals(baseline_dates, pairs),
            is_baseline=True,
        )
    ]
    for project in compared:
        dates = build_date_table(project, documents)
        results.append(ComparisonResult(
            project=project,
            dates=dates,
            intervals=compute_intervals(dates, pairs, baseline_dates),
            is_baseline=False,
        ))
    return results


def sort_results(results: Sequence[ComparisonResult]) -> list[ComparisonResult]:
    """Baseline first, then longest total duration first, incomplete last."""
    baseline = [r for r in results if r.is_baseline]
    others = [r for r in results if not r.is_baseline]
    others.sort(key=lambda r: (r.total_days is None, -(r.total_days or 0)))
    return baseline + others
