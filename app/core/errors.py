"""
Custom exception hierarchy for the solar operations API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Missing milestone dates and empty statistical samples are NOT errors:
they surface as nulls / "incomplete" in the comparison payload.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class SolarOpsException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class BaselineProjectNotFoundError(SolarOpsException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "BASELINE_NOT_FOUND"

    def __init__(self, project_id: str):
        super().__init__(
            message=f"Baseline project {project_id} does not exist or was deleted.",
            details={"project_id": project_id},
        )


class ComparisonTooLargeError(SolarOpsException):
    http_status = 422
    code = "COMPARISON_TOO_LARGE"

    def __init__(self, max_projects: int, received: int):
        super().__init__(
            message=(
                f"At most {max_projects} projects can be compared against a "
                f"baseline. Received {received}."
            ),
            details={"max_projects": max_projects, "received": received},
        )


class ProjectStoreError(SolarOpsException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PROJECT_STORE_UNAVAILABLE"

    def __init__(self, operation: str):
        super().__init__(
            message=f"Failed to read from the project store while {operation}.",
            details={"operation": operation},
        )


class InvalidStageError(SolarOpsException):
    http_status = 422
    code = "INVALID_STAGE"

    def __init__(self, message: str, from_step: int, to_step: int):
        super().__init__(
            message=message,
            details={"from_step": from_step, "to_step": to_step},
        )


class DuplicateStageError(SolarOpsException):
    http_status = status.HTTP_409_CONFLICT
    code = "DUPLICATE_STAGE"

    def __init__(self, stage_code: str):
        super().__init__(
            message=f"Comparison stage {stage_code!r} already exists.",
            details={"code": stage_code},
        )


class ReservedStageCodeError(SolarOpsException):
    http_status = status.HTTP_409_CONFLICT
    code = "RESERVED_STAGE_CODE"

    def __init__(self, stage_code: str):
        super().__init__(
            message=f"{stage_code!r} is a built-in interval id and cannot be reused.",
            details={"code": stage_code},
        )


class StageNotFoundError(SolarOpsException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "STAGE_NOT_FOUND"

    def __init__(self, stage_code: str):
        super().__init__(
            message=f"Comparison stage {stage_code!r} not found.",
            details={"code": stage_code},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def solar_ops_exception_handler(
    request: Request, exc: SolarOpsException
) -> JSONResponse:
    logger.warning(
        "%s %s -> %s %s", request.method, request.url.path, exc.code, exc.message
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=422,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
