"""
Comparison service: reads projects and documents from the store and runs
the comparison engine over them.

Public API
----------
list_projects_for_comparison(db)                  -> list[SolarProject]
list_project_years(db)                            -> list[int]
extract_project_year(project)                     -> int
run_comparison(db, baseline_id, comparison_ids)   -> ComparisonRun

Store failures are re-raised as ProjectStoreError, no retry. Missing
milestone data is not an error; it shows up as incomplete intervals.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    BaselineProjectNotFoundError,
    ComparisonTooLargeError,
    ProjectStoreError,
)
from app.models.document import Document
from app.models.project import SolarProject
from app.services.comparison_engine import ComparisonResult, build_results
from app.services.date_resolver import DocumentRecord, ProjectRecord
from app.services.statistics import ComparisonStats, compute_statistics
from app.services.timeline import COMPARISON_PAIRS, ComparisonPair

logger = logging.getLogger(__name__)

_TRAILING_YEAR_RE = re.compile(r"-(\d{4})$")
_LEADING_YEAR_RE = re.compile(r"^(\d{4})")


@dataclass(frozen=True)
class ComparisonRun:
    baseline: ProjectRecord
    baseline_year: int
    results: list[ComparisonResult]
    stats: list[ComparisonStats]
    total_compared: int


# ---------------------------------------------------------------------------
# Row → record
# ---------------------------------------------------------------------------

def to_project_record(p: SolarProject) -> ProjectRecord:
    return ProjectRecord(
        id=p.id,
        project_code=p.project_code,
        project_name=p.project_name,
        created_at=p.created_at,
        intake_year=p.intake_year,
        revenue_model=p.revenue_model,
        installation_type=p.installation_type,
        initial_survey_date=p.initial_survey_date,
        contract_signed_at=p.contract_signed_at,
        structural_cert_date=p.structural_cert_date,
        electrical_cert_date=p.electrical_cert_date,
        construction_start_date=p.construction_start_date,
        actual_meter_date=p.actual_meter_date,
    )


def to_document_record(d: Document) -> DocumentRecord:
    return DocumentRecord(
        id=d.id,
        project_id=d.project_id,
        doc_type=d.doc_type,
        doc_type_code=d.doc_type_code,
        submitted_at=d.submitted_at,
        issued_at=d.issued_at,
    )


# ---------------------------------------------------------------------------
# Project listing
# ---------------------------------------------------------------------------

def extract_project_year(project: ProjectRecord | SolarProject) -> int:
    """
    Intake year of a project: "-YYYY" suffix of the code, then a "YYYY"
    prefix, then the stored intake_year, then the creation year.
    """
    match = _TRAILING_YEAR_RE.search(project.project_code)
    if match:
        return int(match.group(1))
    match = _LEADING_YEAR_RE.match(project.project_code)
    if match:
        return int(match.group(1))
    if project.intake_year:
        return project.intake_year
    created = project.created_at or datetime.now(tz=timezone.utc)
    return created.year


def list_projects_for_comparison(db: Session) -> list[SolarProject]:
    try:
        return (
            db.query(SolarProject)
            .filter(SolarProject.is_deleted.is_(False))
            .order_by(SolarProject.project_name.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise ProjectStoreError("listing projects") from exc


def list_project_years(db: Session) -> list[int]:
    try:
        rows = (
            db.query(SolarProject.intake_year, SolarProject.created_at)
            .filter(SolarProject.is_deleted.is_(False))
            .all()
        )
    except SQLAlchemyError as exc:
        raise ProjectStoreError("listing project years") from exc

    years: set[int] = set()
    for intake_year, created_at in rows:
        if intake_year:
            years.add(intake_year)
        elif created_at:
            years.add(created_at.year)
    return sorted(years, reverse=True)


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

def _normalize_ids(baseline_id: str, comparison_ids: Sequence[str]) -> list[str]:
    """Drop duplicates and the baseline itself, keep request order."""
    seen = {baseline_id}
    ids: list[str] = []
    for pid in comparison_ids:
        if pid not in seen:
            seen.add(pid)
            ids.append(pid)
    return ids


def _fetch_projects(db: Session, baseline_id: str, ids: list[str]) -> tuple[SolarProject, list[SolarProject]]:
    try:
        baseline = (
            db.query(SolarProject)
            .filter(SolarProject.id == baseline_id, SolarProject.is_deleted.is_(False))
            .first()
        )
        rows = (
            db.query(SolarProject)
            .filter(SolarProject.id.in_(ids), SolarProject.is_deleted.is_(False))
            .all()
            if ids
            else []
        )
    except SQLAlchemyError as exc:
        raise ProjectStoreError("fetching projects") from exc

    if baseline is None:
        raise BaselineProjectNotFoundError(baseline_id)

    by_id = {p.id: p for p in rows}
    return baseline, [by_id[pid] for pid in ids if pid in by_id]


def _fetch_documents(db: Session, project_ids: list[str]) -> list[Document]:
    try:
        return (
            db.query(Document)
            .filter(
                Document.project_id.in_(project_ids),
                Document.is_current.is_(True),
                Document.is_deleted.is_(False),
            )
            .all()
        )
    except SQLAlchemyError as exc:
        raise ProjectStoreError("fetching documents") from exc


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_comparison(
    db: Session,
    baseline_id: str,
    comparison_ids: Sequence[str],
    pairs: Sequence[ComparisonPair] = COMPARISON_PAIRS,
    max_projects: Optional[int] = None,
) -> ComparisonRun:
    """
    Compare `comparison_ids` against `baseline_id`.

    Unknown or deleted comparison ids are dropped silently; an unknown
    baseline raises BaselineProjectNotFoundError. `pairs` defaults to the
    built-in catalog; pass stages.comparison_pairs(db) to add user stages.
    """
    limit = max_projects if max_projects is not None else settings.COMPARISON_MAX_PROJECTS
    ids = _normalize_ids(baseline_id, comparison_ids)
    if len(ids) > limit:
        raise ComparisonTooLargeError(max_projects=limit, received=len(ids))

    baseline_row, compared_rows = _fetch_projects(db, baseline_id, ids)
    project_ids = [baseline_row.id] + [p.id for p in compared_rows]
    documents = [to_document_record(d) for d in _fetch_documents(db, project_ids)]

    baseline = to_project_record(baseline_row)
    compared = [to_project_record(p) for p in compared_rows]
    results = build_results(baseline, compared, documents, pairs)
    stats = compute_statistics(results)

    logger.info(
        "Compared %d projects against baseline %s (%d documents)",
        len(compared), baseline.project_code, len(documents),
        extra={
            "baseline_id": baseline.id,
            "project_count": len(compared),
            "document_count": len(documents),
        },
    )
    if len(compared) < len(ids):
        logger.debug(
            "Dropped %d unknown or deleted comparison ids", len(ids) - len(compared)
        )

    return ComparisonRun(
        baseline=baseline,
        baseline_year=extract_project_year(baseline),
        results=results,
        stats=stats,
        total_compared=len(compared),
    )
