"""Translate workflow and persistence errors into HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from missionflow.api.schemas.common import ErrorResponse
from missionflow.common.logger import get_logger
from missionflow.core.approval.errors import WorkflowError
from missionflow.db.repository import ConcurrentUpdateError, MissionNotFoundError

logger = get_logger("api")

WORKFLOW_STATUS_CODES = {
    "out_of_order": status.HTTP_409_CONFLICT,
    "already_decided": status.HTTP_409_CONFLICT,
    "missing_comment": 422,
    "unknown_role": status.HTTP_400_BAD_REQUEST,
    "invalid_lifecycle_transition": status.HTTP_409_CONFLICT,
    "unknown_mission_type": 422,
    "not_assignee": status.HTTP_403_FORBIDDEN,
}


def _error(status_code: int, error: str, detail: str, code: str, mission_id=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, code=code, mission_id=mission_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def workflow_error_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} refused: {exc.code} ({exc})")
    return _error(
        WORKFLOW_STATUS_CODES.get(exc.code, status.HTTP_400_BAD_REQUEST),
        exc.message,
        str(exc),
        exc.code,
        exc.mission_id,
    )


async def concurrent_update_handler(request: Request, exc: ConcurrentUpdateError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} lost a concurrent update: {exc}")
    return _error(
        status.HTTP_409_CONFLICT,
        "This mission was updated by someone else. Reload it and try again.",
        str(exc),
        "version_conflict",
        exc.mission_id,
    )


async def not_found_handler(request: Request, exc: MissionNotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "Mission not found", str(exc), "not_found", exc.mission_id)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkflowError, workflow_error_handler)
    app.add_exception_handler(ConcurrentUpdateError, concurrent_update_handler)
    app.add_exception_handler(MissionNotFoundError, not_found_handler)
