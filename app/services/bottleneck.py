"""
Bottleneck analysis — for each project, the stage that overran the peer
average the most.

Severity
--------
  critical  days > 2.0 × average
  warning   days > 1.5 × average
  normal    otherwise

Stages whose average is missing or zero are skipped. A project whose
every stage is at or under average has no worst stage.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from app.services.comparison_engine import ComparisonResult
from app.services.statistics import ComparisonStats, round_half_up
from app.services.timeline import STAT_PAIRS, ComparisonPair


class Severity:
    CRITICAL = "critical"
    WARNING  = "warning"
    NORMAL   = "normal"


_CRITICAL_RATIO = 2.0
_WARNING_RATIO = 1.5


@dataclass(frozen=True)
class WorstStage:
    pair_id: str
    label: str
    days: int
    delta: int      # days − average
    average: int
    severity: str


@dataclass(frozen=True)
class BottleneckInfo:
    project_id: str
    project_name: str
    project_code: str
    is_baseline: bool
    worst_stage: Optional[WorstStage]
    total_days: Optional[int]
    avg_delta: Optional[int]


def classify(days: int, average: int) -> str:
    if days > average * _CRITICAL_RATIO:
        return Severity.CRITICAL
    if days > average * _WARNING_RATIO:
        return Severity.WARNING
    return Severity.NORMAL


def _step_pairs(selected: Optional[Sequence[str]]) -> list[ComparisonPair]:
    if not selected:
        return list(STAT_PAIRS)
    return [p for p in STAT_PAIRS if p.id in selected]


def analyze_project(
    result: ComparisonResult,
    averages: dict[str, int],
    pairs: Sequence[ComparisonPair],
) -> BottleneckInfo:
    worst: Optional[WorstStage] = None
    deltas: list[int] = []

    for pair in pairs:
        days = result.complete_days(pair.id)
        average = averages.get(pair.id)
        if days is None or not average:
            continue
        delta = days - average
        deltas.append(delta)
        if worst is None or delta > worst.delta:
            worst = WorstStage(
                pair_id=pair.id,
                label=pair.label,
                days=days,
                delta=delta,
                average=average,
                severity=classify(days, average),
            )

    return BottleneckInfo(
        project_id=result.project.id,
        project_name=result.project.project_name,
        project_code=result.project.project_code,
        is_baseline=result.is_baseline,
        worst_stage=worst if worst is not None and worst.delta > 0 else None,
        total_days=result.total_days,
        avg_delta=round_half_up(sum(deltas) / len(deltas)) if deltas else None,
    )


def analyze_bottlenecks(
    results: Sequence[ComparisonResult],
    stats: Sequence[ComparisonStats],
    selected_intervals: Optional[Sequence[str]] = None,
) -> list[BottleneckInfo]:
    averages = {s.pair_id: s.average for s in stats if s.average is not None}
    pairs = _step_pairs(selected_intervals)
    return [analyze_project(r, averages, pairs) for r in results]


def overall_worst(infos: Sequence[BottleneckInfo]) -> Optional[BottleneckInfo]:
    """The project with the largest positive overrun, or None."""
    flagged = [i for i in infos if i.worst_stage is not None]
    if not flagged:
        return None
    return max(flagged, key=lambda i: i.worst_stage.delta)
