"""
Report generators — CSV export and the Markdown comparison summary.

Pure string formatting over ComparisonResult lists; no I/O.

Public API
----------
generate_comparison_csv(results)                      -> str
encode_csv(text)                                      -> bytes  (UTF-8 + BOM)
comparison_csv_filename(baseline_code, today)         -> str
generate_legal_summary(results, selected_intervals)   -> str    (Markdown)
generate_milestone_table(results)                     -> str    (Markdown)
"""
from __future__ import annotations

import csv
import io
from datetime import date
from typing import Optional, Sequence

from app.services.comparison_engine import ComparisonResult
from app.services.date_resolver import DateValue
from app.services.statistics import average_of, round_half_up, sample_for
from app.services.timeline import (
    COMPARISON_PAIRS,
    CSV_SUMMARY_PAIRS,
    STAT_PAIRS,
    SUMMARY_PAIRS,
    TIMELINE_STEPS,
    TOTAL_PAIR_ID,
    ComparisonPair,
)

CSV_BOM = "\ufeff"

BAR_WIDTH = 40
NAME_WIDTH = 20
BAR_CHAR = "█"


def format_date(value: Optional[DateValue]) -> str:
    """ISO date without time; empty string when missing."""
    if value is None:
        return ""
    return value.isoformat()[:10]


def _days(value: Optional[int]) -> str:
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def csv_headers() -> list[str]:
    headers = ["Project name", "Project code"]
    headers.extend(f"{s.step}.{s.short}" for s in TIMELINE_STEPS)
    headers.extend(f"{p.label} (days)" for p in CSV_SUMMARY_PAIRS)
    return headers


def csv_row(result: ComparisonResult) -> list[str]:
    row = [result.project.project_name, result.project.project_code]
    for step in TIMELINE_STEPS:
        entry = result.dates.get(step.step)
        row.append(format_date(entry.date if entry else None))
    for pair in CSV_SUMMARY_PAIRS:
        row.append(_days(result.complete_days(pair.id)))
    return row


def generate_comparison_csv(results: Sequence[ComparisonResult]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(csv_headers())
    for result in results:
        writer.writerow(csv_row(result))
    return buf.getvalue()


def encode_csv(text: str) -> bytes:
    return (CSV_BOM + text).encode("utf-8")


def comparison_csv_filename(baseline_code: str, today: date) -> str:
    return f"project-comparison_{baseline_code}_{today:%Y%m%d}.csv"


# ---------------------------------------------------------------------------
# Markdown helpers
# ---------------------------------------------------------------------------

def _display_name(result: ComparisonResult) -> str:
    name = result.project.project_name
    return f"{name} (baseline)" if result.is_baseline else name


def _fit_name(name: str) -> str:
    if len(name) > NAME_WIDTH:
        return name[: NAME_WIDTH - 2] + ".."
    return name.ljust(NAME_WIDTH)


def _days_text(days: Optional[int]) -> str:
    return f"{days} days" if days is not None else "incomplete"


def render_bar_chart(results: Sequence[ComparisonResult]) -> list[str]:
    """One bar per project, scaled to the longest full-process duration."""
    totals = [r.total_days for r in results if r.total_days is not None]
    max_days = max([*totals, 1])
    lines = []
    for r in results:
        name = _fit_name(r.project.project_name)
        total = r.total_days
        if total is None:
            lines.append(f"{name} │ (incomplete)")
            continue
        bar = BAR_CHAR * max(round_half_up(total / max_days * BAR_WIDTH), 0)
        marker = " [baseline]" if r.is_baseline else ""
        lines.append(f"{name} │{bar} {total}d{marker}")
    return lines


def _stage_cell(result: ComparisonResult, pair_id: str, baseline_days: Optional[int]) -> str:
    days = result.complete_days(pair_id)
    if days is None:
        return "-"
    if result.is_baseline:
        return f"{days}d (baseline)"
    if baseline_days is not None and days != baseline_days:
        delta = days - baseline_days
        return f"{days}d ({'+' if delta > 0 else ''}{delta})"
    return f"{days}d"


# ---------------------------------------------------------------------------
# Legal summary
# ---------------------------------------------------------------------------

def generate_legal_summary(
    results: Sequence[ComparisonResult],
    selected_intervals: Optional[Sequence[str]] = None,
    extra_pairs: Sequence[ComparisonPair] = (),
) -> str:
    """
    Markdown comparison report for pasting into external documents.

    Sections: baseline information, compared projects, full-process bar
    chart, per-stage table (step pairs only) and summary intervals.
    `extra_pairs` (user-defined stages) are listed after the built-in
    summary intervals. `selected_intervals` limits the last two sections;
    empty or None means every interval.
    """
    baseline = next((r for r in results if r.is_baseline), None)
    if baseline is None:
        return ""

    listed_pairs = [*SUMMARY_PAIRS, *extra_pairs]
    selected = (
        set(selected_intervals)
        if selected_intervals
        else {p.id for p in (*COMPARISON_PAIRS, *extra_pairs)}
    )
    others = [r for r in results if not r.is_baseline]

    baseline_total = baseline.total_days
    avg_total = average_of(sample_for(TOTAL_PAIR_ID, results))

    out: list[str] = []
    out.append("## Project Progress Comparison Report\n")
    out.append("### 1. Baseline project\n")
    out.append(f"- **Project name:** {baseline.project.project_name}")
    out.append(f"- **Project code:** {baseline.project.project_code}")
    out.append(f"- **Full process duration:** {_days_text(baseline_total)}")
    out.append(
        f"- **Peer average:** {f'{avg_total} days' if avg_total is not None else 'N/A'}"
    )
    if baseline_total is not None and avg_total is not None:
        diff = baseline_total - avg_total
        if diff > 0:
            verdict = f"behind the peer average by {diff} days"
        elif diff < 0:
            verdict = f"ahead of the peer average by {abs(diff)} days"
        else:
            verdict = "in line with the peer average"
        out.append(f"\n**Variance:** the baseline project is {verdict}")

    out.append("\n### 2. Compared projects\n")
    for r in others:
        out.append(
            f"- {r.project.project_name} ({r.project.project_code}): {_days_text(r.total_days)}"
        )

    out.append("\n### 3. Full process duration (bar chart)\n")
    out.append("Full process duration of each project:\n")
    out.append("```")
    out.extend(render_bar_chart(results))
    out.append("```")

    step_pairs = [p for p in STAT_PAIRS if p.id in selected]
    if step_pairs:
        out.append("\n### 4. Stage duration table\n")
        out.append(
            "Days spent in each stage, dated from document issue or submission dates."
        )
        out.append("(+) means slower than the baseline, (-) means faster.\n")
        names = " | ".join(_display_name(r) for r in results)
        out.append(f"| Step | Stage | {names} | Peer average |")
        out.append(f"| --- | --- | {' | '.join('---' for _ in results)} | --- |")
        for pair in step_pairs:
            baseline_days = baseline.complete_days(pair.id)
            cells = " | ".join(_stage_cell(r, pair.id, baseline_days) for r in results)
            average = average_of(sample_for(pair.id, results))
            avg_cell = f"{average}d" if average is not None else "-"
            out.append(f"| {pair.from_step + 1} | {pair.label} | {cells} | {avg_cell} |")

    summary_pairs = [p for p in listed_pairs if p.id in selected]
    if summary_pairs:
        out.append("\n### 5. Summary intervals\n")
        for pair in summary_pairs:
            out.append(f"**{pair.label}** ({pair.description}):")
            for r in results:
                label = (
                    f"[baseline] {r.project.project_name}"
                    if r.is_baseline
                    else r.project.project_name
                )
                out.append(f"  - {label}: {_days_text(r.complete_days(pair.id))}")
            out.append("")

    return "\n".join(out) + "\n"


def generate_milestone_table(results: Sequence[ComparisonResult]) -> str:
    """Markdown table of every resolved milestone date per project."""
    out = ["### 6. Milestone dates\n"]
    out.append(f"| # | Milestone | {' | '.join(_display_name(r) for r in results)} |")
    out.append(f"| --- | --- | {' | '.join('---' for _ in results)} |")
    for step in TIMELINE_STEPS:
        cells = []
        for r in results:
            entry = r.dates.get(step.step)
            cells.append(format_date(entry.date if entry else None) or "-")
        out.append(f"| {step.step} | {step.label} | {' | '.join(cells)} |")
    return "\n".join(out) + "\n"
