"""
Comparison router.

GET    /comparison/projects         — selectable projects
GET    /comparison/years            — intake years present in the store
GET    /comparison/milestones       — the twelve timeline steps
POST   /comparison                  — run a comparison (JSON)
POST   /comparison/csv              — same run as a CSV download
POST   /comparison/legal-summary    — same run as a Markdown report
POST   /comparison/bottlenecks      — worst stage per project
GET    /comparison/stages           — built-in intervals plus user stages
POST   /comparison/stages           — add a user stage
DELETE /comparison/stages/{code}    — deactivate a user stage
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.comparison import (
    BottleneckOut,
    BottleneckResponse,
    ComparisonRequest,
    ComparisonResponse,
    ComparisonResultOut,
    ComparisonStatsOut,
    IntervalOut,
    LegalSummaryRequest,
    MilestoneOptionOut,
    ProjectOptionOut,
    ResolvedDateOut,
    StageCreateRequest,
    StageOut,
    WorstStageOut,
)
from app.services import stages as stage_service
from app.services.bottleneck import BottleneckInfo, analyze_bottlenecks, overall_worst
from app.services.comparison import (
    ComparisonRun,
    list_project_years,
    list_projects_for_comparison,
    run_comparison,
)
from app.services.comparison_engine import ComparisonResult, sort_results
from app.services.reports import (
    comparison_csv_filename,
    encode_csv,
    format_date,
    generate_comparison_csv,
    generate_legal_summary,
    generate_milestone_table,
)
from app.services.timeline import TIMELINE_STEPS, milestone_options

router = APIRouter(prefix="/comparison", tags=["comparison"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _project_out(p) -> ProjectOptionOut:
    """Accepts either a SolarProject row or a ProjectRecord."""
    return ProjectOptionOut(
        id=p.id,
        project_name=p.project_name,
        project_code=p.project_code,
        created_at=p.created_at.isoformat() if p.created_at else None,
        revenue_model=p.revenue_model,
        installation_type=p.installation_type,
        intake_year=p.intake_year,
    )


def _result_out(r: ComparisonResult) -> ComparisonResultOut:
    dates = []
    for step in TIMELINE_STEPS:
        entry = r.dates.get(step.step)
        dates.append(ResolvedDateOut(
            step=step.step,
            date=(format_date(entry.date) or None) if entry else None,
            doc_type=entry.doc_type if entry else None,
            source=entry.source if entry else None,
        ))
    intervals = {
        pair_id: IntervalOut(
            from_date=format_date(i.from_date) or None,
            to_date=format_date(i.to_date) or None,
            days=i.days,
            delta=i.delta,
            status=i.status,
        )
        for pair_id, i in r.intervals.items()
    }
    return ComparisonResultOut(
        project=_project_out(r.project),
        is_baseline=r.is_baseline,
        dates=dates,
        intervals=intervals,
    )


def _run_to_response(run: ComparisonRun) -> ComparisonResponse:
    return ComparisonResponse(
        baseline=_project_out(run.baseline),
        baseline_year=run.baseline_year,
        total_compared=run.total_compared,
        results=[_result_out(r) for r in sort_results(run.results)],
        stats=[ComparisonStatsOut(**asdict(s)) for s in run.stats],
    )


def _bottleneck_out(info: Optional[BottleneckInfo]) -> Optional[BottleneckOut]:
    if info is None:
        return None
    return BottleneckOut(
        project_id=info.project_id,
        project_name=info.project_name,
        project_code=info.project_code,
        is_baseline=info.is_baseline,
        worst_stage=WorstStageOut(**asdict(info.worst_stage)) if info.worst_stage else None,
        total_days=info.total_days,
        avg_delta=info.avg_delta,
    )


def _run(payload: ComparisonRequest, db: Session) -> ComparisonRun:
    return run_comparison(
        db=db,
        baseline_id=payload.baseline_id,
        comparison_ids=payload.comparison_ids,
        pairs=stage_service.comparison_pairs(db),
    )


def _today() -> datetime:
    return datetime.now(tz=timezone.utc)


# ---------------------------------------------------------------------------
# Catalog endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/projects",
    response_model=list[ProjectOptionOut],
    summary="Projects available for comparison",
)
def projects(db: Session = Depends(get_db)):
    """Non-deleted projects ordered by name."""
    return [_project_out(p) for p in list_projects_for_comparison(db)]


@router.get("/years", response_model=list[int], summary="Intake years, newest first")
def years(db: Session = Depends(get_db)):
    return list_project_years(db)


@router.get(
    "/milestones",
    response_model=list[MilestoneOptionOut],
    summary="Timeline steps 0..11",
)
def milestones():
    return [MilestoneOptionOut(**m) for m in milestone_options()]


# ---------------------------------------------------------------------------
# POST /comparison
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ComparisonResponse,
    summary="Compare project timelines against a baseline",
    responses={
        404: {"description": "Baseline project not found."},
        422: {"description": "Validation error or too many projects."},
        503: {"description": "Project store unavailable."},
    },
)
def compare(payload: ComparisonRequest, db: Session = Depends(get_db)):
    """
    Resolve the twelve milestone dates of every project, compute each
    interval and its delta against the baseline, and aggregate the
    step intervals across the compared projects.

    Missing dates are not errors: the affected intervals come back with
    `status="incomplete"` and null `days` / `delta`.
    """
    return _run_to_response(_run(payload, db))


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

@router.post(
    "/csv",
    summary="Comparison as a CSV download",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
def compare_csv(payload: ComparisonRequest, db: Session = Depends(get_db)):
    """UTF-8 CSV with a byte-order mark, one row per project."""
    run = _run(payload, db)
    body = encode_csv(generate_comparison_csv(sort_results(run.results)))
    filename = comparison_csv_filename(run.baseline.project_code, _today().date())
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}",
        },
    )


@router.post(
    "/legal-summary",
    summary="Comparison as a Markdown report",
    response_class=Response,
    responses={200: {"content": {"text/markdown": {}}}},
)
def legal_summary(payload: LegalSummaryRequest, db: Session = Depends(get_db)):
    """
    Markdown report for copy-paste: baseline details, bar chart of full
    process durations, per-stage deltas, summary intervals and the
    milestone date table.
    """
    run = _run(payload, db)
    ordered = sort_results(run.results)
    text = (
        generate_legal_summary(
            ordered,
            payload.selected_intervals,
            extra_pairs=stage_service.custom_pairs(db),
        )
        + "\n"
        + generate_milestone_table(ordered)
    )
    return Response(content=text, media_type="text/markdown; charset=utf-8")


@router.post(
    "/bottlenecks",
    response_model=BottleneckResponse,
    summary="Worst stage per project",
)
def bottlenecks(payload: LegalSummaryRequest, db: Session = Depends(get_db)):
    run = _run(payload, db)
    infos = analyze_bottlenecks(
        sort_results(run.results), run.stats, payload.selected_intervals
    )
    return BottleneckResponse(
        overall_worst=_bottleneck_out(overall_worst(infos)),
        projects=[_bottleneck_out(i) for i in infos],
    )


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

@router.get("/stages", response_model=list[StageOut], summary="Comparison stages")
def list_stages(db: Session = Depends(get_db)):
    """Built-in intervals in catalog order, then user stages by sort order."""
    return [StageOut(**asdict(s)) for s in stage_service.all_stages(db)]


@router.post(
    "/stages",
    response_model=StageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a user comparison stage",
    responses={
        409: {"description": "The code is a built-in interval id or already in use."},
        422: {"description": "Invalid steps."},
    },
)
def create_stage(payload: StageCreateRequest, db: Session = Depends(get_db)):
    row = stage_service.create_stage(
        db=db,
        code=payload.code,
        label=payload.label,
        description=payload.description,
        from_step=payload.from_step,
        to_step=payload.to_step,
        sort_order=payload.sort_order,
    )
    return StageOut(
        id=row.code,
        label=row.label,
        description=row.description,
        from_step=row.from_step,
        to_step=row.to_step,
        sort_order=row.sort_order,
        is_system=False,
    )


@router.delete(
    "/stages/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate a user stage",
    responses={404: {"description": "No active user stage with this code."}},
)
def delete_stage(code: str, db: Session = Depends(get_db)):
    stage_service.deactivate_stage(db, code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
