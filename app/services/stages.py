"""
Comparison stages: built-in comparison pairs plus user-defined extras.

The built-in catalog is never mutated and its ids are reserved: every
comparison run computes all built-in pairs under their own meaning, and
active `comparison_stages` rows add further intervals after them.

  - built-in pairs first, catalog order
  - then database stages, ordered by sort_order

With no active rows the result is exactly the built-in catalog.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    DuplicateStageError,
    InvalidStageError,
    ProjectStoreError,
    ReservedStageCodeError,
    StageNotFoundError,
)
from app.models.comparison_stage import ComparisonStage
from app.services.timeline import COMPARISON_PAIRS, ComparisonPair, get_pair, is_valid_step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageView:
    id: str
    label: str
    description: Optional[str]
    from_step: int
    to_step: int
    sort_order: int
    is_system: bool

    def as_pair(self) -> ComparisonPair:
        return ComparisonPair(
            id=self.id,
            label=self.label,
            description=self.description or self.label,
            from_step=self.from_step,
            to_step=self.to_step,
        )


def system_stages() -> list[StageView]:
    return [
        StageView(
            id=pair.id,
            label=pair.label,
            description=pair.description,
            from_step=pair.from_step,
            to_step=pair.to_step,
            sort_order=index,
            is_system=True,
        )
        for index, pair in enumerate(COMPARISON_PAIRS)
    ]


def is_reserved_code(code: str) -> bool:
    return get_pair(code) is not None


def _stage_view(row: ComparisonStage) -> StageView:
    return StageView(
        id=row.code,
        label=row.label,
        description=row.description,
        from_step=row.from_step,
        to_step=row.to_step,
        sort_order=row.sort_order,
        is_system=False,
    )


def custom_stages(db: Session) -> list[StageView]:
    try:
        rows = (
            db.query(ComparisonStage)
            .filter(ComparisonStage.is_active.is_(True))
            .order_by(ComparisonStage.sort_order.asc(), ComparisonStage.id.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise ProjectStoreError("reading comparison stages") from exc

    views = []
    for row in rows:
        # Rows written before built-in ids were reserved
        if is_reserved_code(row.code):
            logger.warning("Ignoring comparison stage %s: built-in interval id", row.code)
            continue
        views.append(_stage_view(row))
    return views


def merge_stages(custom: list[StageView], system: list[StageView]) -> list[StageView]:
    return list(system) + list(custom)


def all_stages(db: Session) -> list[StageView]:
    return merge_stages(custom_stages(db), system_stages())


def custom_pairs(db: Session) -> list[ComparisonPair]:
    return [s.as_pair() for s in custom_stages(db)]


def comparison_pairs(db: Session) -> list[ComparisonPair]:
    """Pairs to compute for a comparison run: the catalog, then user stages."""
    return list(COMPARISON_PAIRS) + custom_pairs(db)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def validate_steps(from_step: int, to_step: int) -> None:
    if not (is_valid_step(from_step) and is_valid_step(to_step)):
        raise InvalidStageError(
            "Stage endpoints must be existing timeline steps.", from_step, to_step
        )
    if from_step >= to_step:
        raise InvalidStageError(
            "Stage must start before it ends (from_step < to_step).", from_step, to_step
        )


def create_stage(
    db: Session,
    code: str,
    label: str,
    from_step: int,
    to_step: int,
    description: Optional[str] = None,
    sort_order: int = 0,
) -> ComparisonStage:
    validate_steps(from_step, to_step)
    if is_reserved_code(code):
        raise ReservedStageCodeError(code)

    existing = db.query(ComparisonStage).filter(ComparisonStage.code == code).first()
    if existing is not None and existing.is_active:
        raise DuplicateStageError(code)

    if existing is None:
        stage = ComparisonStage(code=code)
        db.add(stage)
    else:
        stage = existing
    stage.label = label
    stage.description = description
    stage.from_step = from_step
    stage.to_step = to_step
    stage.sort_order = sort_order
    stage.is_active = True

    db.commit()
    db.refresh(stage)
    logger.info("Comparison stage %s saved (%d → %d)", code, from_step, to_step)
    return stage


def deactivate_stage(db: Session, code: str) -> ComparisonStage:
    stage = (
        db.query(ComparisonStage)
        .filter(ComparisonStage.code == code, ComparisonStage.is_active.is_(True))
        .first()
    )
    if stage is None:
        raise StageNotFoundError(code)
    stage.is_active = False
    db.commit()
    db.refresh(stage)
    logger.info("Comparison stage %s deactivated", code)
    return stage
