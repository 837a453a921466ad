"""
Comparison request / response schemas.

POST /comparison                 → ComparisonRequest      → ComparisonResponse
POST /comparison/csv             → ComparisonRequest      → text/csv
POST /comparison/legal-summary   → LegalSummaryRequest    → text/markdown
POST /comparison/bottlenecks     → LegalSummaryRequest    → BottleneckResponse
GET  /comparison/projects        → list[ProjectOptionOut]
GET  /comparison/milestones      → list[MilestoneOptionOut]
GET/POST /comparison/stages      → StageCreateRequest     → StageOut
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class ComparisonRequest(BaseModel):
    """Baseline plus the projects to compare against it."""
    baseline_id: Annotated[str, Field(
        min_length=1,
        description="Identifier of the baseline project. All deltas are relative to it.",
    )]
    comparison_ids: list[str] = Field(
        default_factory=list,
        description=(
            "Projects to compare, in display order. Unknown ids, duplicates and "
            "the baseline id itself are ignored."
        ),
    )


class LegalSummaryRequest(ComparisonRequest):
    selected_intervals: Optional[list[str]] = Field(
        default=None,
        description="Interval ids to include. Omit or leave empty for all intervals.",
        examples=[["interval_01_02", "interval_total"]],
    )


class StageCreateRequest(BaseModel):
    code: Annotated[str, Field(
        min_length=1,
        max_length=64,
        pattern=r"^[A-Za-z0-9_\-]+$",
        description="Stable id. Built-in interval ids are reserved.",
        examples=["custom_permit_window"],
    )]
    label: Annotated[str, Field(min_length=1, max_length=128)]
    description: Optional[str] = None
    from_step: int = Field(ge=0, description="Starting milestone step.")
    to_step: int = Field(ge=0, description="Ending milestone step.")
    sort_order: int = 0

    @field_validator("label", mode="before")
    @classmethod
    def strip_label(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("label must not be empty after stripping whitespace")
        return stripped


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class ProjectOptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_name: str
    project_code: str
    created_at: Optional[str] = None
    revenue_model: Optional[str] = None
    installation_type: Optional[str] = None
    intake_year: Optional[int] = None


class MilestoneOptionOut(BaseModel):
    step: int
    label: str
    short_label: str
    color: str


class ResolvedDateOut(BaseModel):
    step: int
    date: Optional[str] = Field(default=None, description="ISO date, null if unresolved.")
    doc_type: Optional[str] = Field(
        default=None,
        description="Label of the matched document; set even when that document has no date.",
    )
    source: Optional[str] = Field(
        default=None, description='"project_field" | "document" | null'
    )


class IntervalOut(BaseModel):
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    days: Optional[int] = None
    delta: Optional[int] = Field(default=None, description="days − baseline days.")
    status: str = Field(description='"complete" | "incomplete"')


class ComparisonResultOut(BaseModel):
    project: ProjectOptionOut
    is_baseline: bool
    dates: list[ResolvedDateOut] = Field(description="One entry per step, step order.")
    intervals: dict[str, IntervalOut] = Field(description="Keyed by interval id.")


class ComparisonStatsOut(BaseModel):
    pair_id: str
    count: int
    average: Optional[int] = None
    median: Optional[int] = None
    min: Optional[int] = None
    max: Optional[int] = None


class ComparisonResponse(BaseModel):
    baseline: ProjectOptionOut
    baseline_year: int
    total_compared: int
    results: list[ComparisonResultOut] = Field(
        description="Baseline first, then by full-process duration, longest first."
    )
    stats: list[ComparisonStatsOut]


class WorstStageOut(BaseModel):
    pair_id: str
    label: str
    days: int
    delta: int
    average: int
    severity: str = Field(description='"critical" | "warning" | "normal"')


class BottleneckOut(BaseModel):
    project_id: str
    project_name: str
    project_code: str
    is_baseline: bool
    worst_stage: Optional[WorstStageOut] = None
    total_days: Optional[int] = None
    avg_delta: Optional[int] = None


class BottleneckResponse(BaseModel):
    overall_worst: Optional[BottleneckOut] = None
    projects: list[BottleneckOut]


class StageOut(BaseModel):
    id: str
    label: str
    description: Optional[str] = None
    from_step: int
    to_step: int
    sort_order: int
    is_system: bool
