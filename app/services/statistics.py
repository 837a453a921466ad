"""
Aggregator — per-interval sample statistics across the compared
(non-baseline) projects.

Only complete intervals enter the sample. Average and median are rounded
half-up to whole days; min and max are reported as-is. An empty sample
gives count=0 and None for every statistic.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from app.services.comparison_engine import ComparisonResult
from app.services.timeline import STAT_PAIRS, ComparisonPair


@dataclass(frozen=True)
class ComparisonStats:
    pair_id: str
    count: int
    average: Optional[int]
    median: Optional[int]
    min: Optional[int]
    max: Optional[int]


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def median(values: Sequence[int]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def sample_for(pair_id: str, results: Sequence[ComparisonResult]) -> list[int]:
    """Complete day counts of `pair_id` for every non-baseline result."""
    sample: list[int] = []
    for r in results:
        if r.is_baseline:
            continue
        days = r.complete_days(pair_id)
        if days is not None:
            sample.append(days)
    return sample


def average_of(values: Sequence[int]) -> Optional[int]:
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def compute_pair_statistics(
    pair_id: str, results: Sequence[ComparisonResult]
) -> ComparisonStats:
    sample = sample_for(pair_id, results)
    if not sample:
        return ComparisonStats(
            pair_id=pair_id, count=0, average=None, median=None, min=None, max=None
        )
    return ComparisonStats(
        pair_id=pair_id,
        count=len(sample),
        average=average_of(sample),
        median=round_half_up(median(sample)),
        min=min(sample),
        max=max(sample),
    )


def compute_statistics(
    results: Sequence[ComparisonResult],
    pairs: Sequence[ComparisonPair] = STAT_PAIRS,
) -> list[ComparisonStats]:
    return [compute_pair_statistics(pair.id, results) for pair in pairs]
