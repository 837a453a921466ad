"""
Timeline catalog — the twelve milestones (steps 0..11) of a solar
installation and the named intervals between them.

Step sources
------------
Each step is one of three variants, carrying only the fields it uses:

  DirectField           date lives on the project row, nothing else.
  DocumentWithFallback  project row first; if empty, the matched
                        document's `fallback_field` (submitted_at).
  DocumentOnly          the matched document's `date_field`.

    0  initial survey              projects.initial_survey_date
    1  contract signed             projects.contract_signed_at
    2  grid review opinion         TPC_REVIEW.issued_at
    3  energy bureau consent       MOEA_CONSENT.issued_at
    4  structural certification    projects.structural_cert_date  | BUILD_EXEMPT_APP.submitted_at
    5  building exemption approval BUILD_EXEMPT_APP.issued_at
    6  power purchase agreement    TPC_CONTRACT.issued_at
    7  electrical certification    projects.electrical_cert_date  | TPC_CONTRACT.submitted_at
    8  materials on site           projects.construction_start_date | BUILD_EXEMPT_COMP.submitted_at
    9  building exemption closure  BUILD_EXEMPT_COMP.issued_at
   10  grid meter installed        projects.actual_meter_date
   11  equipment registration      MOEA_REGISTER.issued_at

`doc_type_labels` are the labels the document store actually carries and
are matched verbatim (substring or equality).

Everything here is module-level tuples of frozen dataclasses. User
stages are merged on top at read time by app/services/stages.py.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

DocDateField = Literal["submitted_at", "issued_at"]
ProjectDateField = Literal[
    "initial_survey_date",
    "contract_signed_at",
    "structural_cert_date",
    "electrical_cert_date",
    "construction_start_date",
    "actual_meter_date",
]


# ---------------------------------------------------------------------------
# Step variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DirectField:
    step: int
    label: str
    short: str
    color: str
    project_field: ProjectDateField


@dataclass(frozen=True)
class DocumentWithFallback:
    step: int
    label: str
    short: str
    color: str
    project_field: ProjectDateField
    doc_type_codes: tuple[str, ...]
    doc_type_labels: tuple[str, ...]
    fallback_field: DocDateField = "submitted_at"


@dataclass(frozen=True)
class DocumentOnly:
    step: int
    label: str
    short: str
    color: str
    doc_type_codes: tuple[str, ...]
    doc_type_labels: tuple[str, ...]
    date_field: DocDateField = "issued_at"


TimelineStep = Union[DirectField, DocumentWithFallback, DocumentOnly]


TIMELINE_STEPS: tuple[TimelineStep, ...] = (
    DirectField(
        step=0,
        label="Initial site survey",
        short="Survey",
        color="#78716c",
        project_field="initial_survey_date",
    ),
    DirectField(
        step=1,
        label="Contract signed with client",
        short="Signed",
        color="#6366f1",
        project_field="contract_signed_at",
    ),
    DocumentOnly(
        step=2,
        label="Grid operator review opinion",
        short="Grid review",
        color="#3b82f6",
        doc_type_codes=("TPC_REVIEW",),
        doc_type_labels=("審查意見書", "台電審查意見書"),
    ),
    DocumentOnly(
        step=3,
        label="Energy bureau filing consent",
        short="Consent",
        color="#10b981",
        doc_type_codes=("MOEA_CONSENT",),
        doc_type_labels=("同意備案", "能源署同意備案", "能源署同意備案函", "綠能容許"),
    ),
    DocumentWithFallback(
        step=4,
        label="Structural engineer certification",
        short="Structural cert",
        color="#8b5cf6",
        project_field="structural_cert_date",
        doc_type_codes=("BUILD_EXEMPT_APP",),
        doc_type_labels=("免雜項申請", "結構技師簽證", "結構簽證"),
    ),
    DocumentOnly(
        step=5,
        label="Building permit exemption approved",
        short="Exemption approved",
        color="#06b6d4",
        doc_type_codes=("BUILD_EXEMPT_APP",),
        doc_type_labels=("免雜項執照同意函", "免雜項同意", "免雜同意", "免雜項執照", "免雜項申請"),
    ),
    DocumentOnly(
        step=6,
        label="Power purchase agreement",
        short="PPA",
        color="#f59e0b",
        doc_type_codes=("TPC_CONTRACT",),
        doc_type_labels=("躉售合約", "躉購合約", "台電躉購合約", "台電躉購合約蓋章完成"),
    ),
    DocumentWithFallback(
        step=7,
        label="Electrical engineer certification",
        short="Electrical cert",
        color="#14b8a6",
        project_field="electrical_cert_date",
        doc_type_codes=("TPC_CONTRACT",),
        doc_type_labels=("躉售合約", "電機技師簽證", "電機簽證"),
    ),
    DocumentWithFallback(
        step=8,
        label="Materials on site / construction start",
        short="Construction",
        color="#ec4899",
        project_field="construction_start_date",
        doc_type_codes=("BUILD_EXEMPT_COMP",),
        doc_type_labels=("材料進場", "施工", "開工"),
    ),
    DocumentOnly(
        step=9,
        label="Building permit exemption closed",
        short="Exemption closed",
        color="#ef4444",
        doc_type_codes=("BUILD_EXEMPT_COMP",),
        doc_type_labels=("免雜項執照竣工函", "免雜項竣工", "免雜竣工", "免雜項執照竣工"),
    ),
    DirectField(
        step=10,
        label="Grid meter installed (completion)",
        short="Meter",
        color="#f97316",
        project_field="actual_meter_date",
    ),
    DocumentOnly(
        step=11,
        label="Equipment registration approved",
        short="Registration",
        color="#a855f7",
        doc_type_codes=("MOEA_REGISTER",),
        doc_type_labels=("設備登記", "能源署設備登記", "設備登記函", "設備登記核准"),
    ),
)

_STEPS_BY_NUMBER: dict[int, TimelineStep] = {s.step: s for s in TIMELINE_STEPS}

FIRST_STEP = TIMELINE_STEPS[0].step
LAST_STEP = TIMELINE_STEPS[-1].step


# ---------------------------------------------------------------------------
# Comparison pairs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ComparisonPair:
    id: str
    label: str
    description: str
    from_step: int
    to_step: int

    @property
    def is_consecutive(self) -> bool:
        return self.to_step - self.from_step == 1


def _consecutive(from_step: int) -> ComparisonPair:
    src = _STEPS_BY_NUMBER[from_step]
    dst = _STEPS_BY_NUMBER[from_step + 1]
    return ComparisonPair(
        id=f"interval_{from_step:02d}_{from_step + 1:02d}",
        label=f"{src.short} → {dst.short}",
        description=f"{src.label} → {dst.label}",
        from_step=from_step,
        to_step=from_step + 1,
    )


COMPARISON_PAIRS: tuple[ComparisonPair, ...] = (
    *(_consecutive(step) for step in range(FIRST_STEP, LAST_STEP)),
    ComparisonPair(
        id="interval_total",
        label="Full process",
        description="Contract signed → equipment registration approved (end to end)",
        from_step=1,
        to_step=11,
    ),
    ComparisonPair(
        id="interval_01_03",
        label="Signing to consent",
        description="Contract signed → energy bureau filing consent (early permitting)",
        from_step=1,
        to_step=3,
    ),
    ComparisonPair(
        id="interval_03_06",
        label="Consent to PPA",
        description="Energy bureau filing consent → power purchase agreement (mid-stage contracting)",
        from_step=3,
        to_step=6,
    ),
    ComparisonPair(
        id="interval_06_10",
        label="PPA to meter",
        description="Power purchase agreement → grid meter installed (engineering phase)",
        from_step=6,
        to_step=10,
    ),
    ComparisonPair(
        id="interval_04_07",
        label="Structural to electrical",
        description="Structural certification → electrical certification (engineer sign-off)",
        from_step=4,
        to_step=7,
    ),
    ComparisonPair(
        id="interval_08_10",
        label="Construction to meter",
        description="Materials on site → grid meter installed (construction only)",
        from_step=8,
        to_step=10,
    ),
)

_PAIRS_BY_ID: dict[str, ComparisonPair] = {p.id: p for p in COMPARISON_PAIRS}

TOTAL_PAIR_ID = "interval_total"

# Statistics and the per-stage report table cover the first ten pairs only.
STAT_PAIRS: tuple[ComparisonPair, ...] = COMPARISON_PAIRS[:10]
SUMMARY_PAIRS: tuple[ComparisonPair, ...] = COMPARISON_PAIRS[10:]

# Trailing CSV columns: multi-step summary intervals only.
CSV_SUMMARY_PAIRS: tuple[ComparisonPair, ...] = tuple(
    _PAIRS_BY_ID[pair_id]
    for pair_id in ("interval_total", "interval_01_03", "interval_06_10", "interval_08_10")
)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_step(step: int) -> TimelineStep:
    return _STEPS_BY_NUMBER[step]


def get_pair(pair_id: str) -> Optional[ComparisonPair]:
    return _PAIRS_BY_ID.get(pair_id)


def is_valid_step(step: int) -> bool:
    return step in _STEPS_BY_NUMBER


def milestone_options() -> list[dict]:
    """Step pickers for clients: step number, labels and chart color."""
    return [
        {"step": s.step, "label": s.label, "short_label": s.short, "color": s.color}
        for s in TIMELINE_STEPS
    ]
