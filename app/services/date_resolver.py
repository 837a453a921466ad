"""
Date Resolver — turns a project plus its documents into one date per
timeline step.

Pure functions over plain records (no ORM, no session): the comparison
service converts rows into `ProjectRecord` / `DocumentRecord` first.

Document matching
-----------------
1. Declared doc_type_codes in order; for each code the first document
   (input order) with that exact code wins.
2. Otherwise declared doc_type_labels in order; for each label the first
   document whose label contains (or equals) it wins.

When several documents match, input order decides. No recency tie-break.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, Union

from app.services.timeline import (
    TIMELINE_STEPS,
    DirectField,
    DocumentOnly,
    DocumentWithFallback,
    TimelineStep,
)

DateValue = Union[date, datetime]


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectRecord:
    id: str
    project_code: str
    project_name: str
    created_at: Optional[datetime] = None
    intake_year: Optional[int] = None
    revenue_model: Optional[str] = None
    installation_type: Optional[str] = None
    initial_survey_date: Optional[DateValue] = None
    contract_signed_at: Optional[DateValue] = None
    structural_cert_date: Optional[DateValue] = None
    electrical_cert_date: Optional[DateValue] = None
    construction_start_date: Optional[DateValue] = None
    actual_meter_date: Optional[DateValue] = None


@dataclass(frozen=True)
class DocumentRecord:
    id: str
    project_id: str
    doc_type: Optional[str] = None
    doc_type_code: Optional[str] = None
    submitted_at: Optional[DateValue] = None
    issued_at: Optional[DateValue] = None


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class DateSource:
    PROJECT_FIELD = "project_field"
    DOCUMENT      = "document"


@dataclass(frozen=True)
class ResolvedDate:
    """The date found for one (project, step); `date` is None if unresolved."""
    step: int
    date: Optional[DateValue] = None
    doc_type: Optional[str] = None   # label/code of the matched document, even if it had no date
    source: Optional[str] = field(default=None)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def _label_matches(doc_label: Optional[str], wanted: str) -> bool:
    if not doc_label:
        return False
    return wanted in doc_label or doc_label == wanted


def find_document(
    step: Union[DocumentWithFallback, DocumentOnly],
    documents: Sequence[DocumentRecord],
) -> Optional[DocumentRecord]:
    for code in step.doc_type_codes:
        for doc in documents:
            if doc.doc_type_code == code:
                return doc
    for label in step.doc_type_labels:
        for doc in documents:
            if _label_matches(doc.doc_type, label):
                return doc
    return None


def _from_document(step_no: int, doc: DocumentRecord, value: Optional[DateValue]) -> ResolvedDate:
    # A matched document without the date still names itself
    if value is None:
        return ResolvedDate(step=step_no, doc_type=doc.doc_type or doc.doc_type_code)
    return ResolvedDate(
        step=step_no,
        date=value,
        doc_type=doc.doc_type or doc.doc_type_code,
        source=DateSource.DOCUMENT,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve_step(
    project: ProjectRecord,
    documents: Sequence[DocumentRecord],
    step: TimelineStep,
) -> ResolvedDate:
    """Resolve the date of a single step for a single project."""
    if isinstance(step, (DirectField, DocumentWithFallback)):
        value = getattr(project, step.project_field, None)
        if value:
            return ResolvedDate(
                step=step.step, date=value, source=DateSource.PROJECT_FIELD
            )
        if isinstance(step, DirectField):
            return ResolvedDate(step=step.step)
        doc = find_document(step, documents)
        if doc is None:
            return ResolvedDate(step=step.step)
        return _from_document(step.step, doc, getattr(doc, step.fallback_field))

    doc = find_document(step, documents)
    if doc is None:
        return ResolvedDate(step=step.step)
    if step.date_field == "submitted_at":
        value = doc.submitted_at or doc.issued_at
    else:
        value = doc.issued_at
    return _from_document(step.step, doc, value)


def build_date_table(
    project: ProjectRecord,
    documents: Iterable[DocumentRecord],
    steps: Sequence[TimelineStep] = TIMELINE_STEPS,
) -> dict[int, ResolvedDate]:
    """
    Resolve every step for one project.

    `documents` may contain other projects' rows; only those belonging to
    `project` are considered, in input order.
    """
    own = [d for d in documents if d.project_id == project.id]
    return {step.step: resolve_step(project, own, step) for step in steps}
