"""
Recurrence pattern API endpoints.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from recurrence_engine.api.deps import Coordinator, CurrentUser, RecurrencePatternSvc
from recurrence_engine.core.exceptions import DuplicateError, NotFoundError, ValidationError
from recurrence_engine.models.recurrence_pattern import (
    RecurrencePatternCreate,
    RecurrencePatternRead,
    RecurrencePatternUpdate,
)

router = APIRouter()


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)


def _invalid(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": exc.message, "errors": exc.details},
    )


@router.post(
    "/tasks/{task_id}/recurrence",
    response_model=RecurrencePatternRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_recurrence_pattern(
    task_id: UUID,
    payload: RecurrencePatternCreate,
    user: CurrentUser,
    service: RecurrencePatternSvc,
) -> RecurrencePatternRead:
    """Attach a recurrence pattern to a task."""
    try:
        pattern = await service.create_pattern(user.id, task_id, payload)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc
    return service.to_read(pattern)


@router.get("/tasks/{task_id}/recurrence", response_model=RecurrencePatternRead)
async def get_task_recurrence_pattern(
    task_id: UUID,
    user: CurrentUser,
    service: RecurrencePatternSvc,
) -> RecurrencePatternRead:
    """Get the recurrence pattern of a task."""
    try:
        pattern = await service.get_by_task_id(user.id, task_id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    return service.to_read(pattern)


@router.get("/recurrence-patterns", response_model=list[RecurrencePatternRead])
async def list_recurrence_patterns(
    user: CurrentUser,
    service: RecurrencePatternSvc,
    active_only: bool = Query(False, description="Only patterns still generating instances"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[RecurrencePatternRead]:
    """List the current user's recurrence patterns."""
    patterns = await service.list_patterns(
        user.id, active_only=active_only, limit=limit, offset=offset
    )
    return [service.to_read(pattern) for pattern in patterns]


@router.post("/recurrence-patterns/process")
async def process_recurrence_patterns(coordinator: Coordinator):
    """Run one recurrence tick now."""
    generated_count = await coordinator.process_pending_recurrences()
    return {"generated_count": generated_count}


@router.patch("/recurrence-patterns/{pattern_id}", response_model=RecurrencePatternRead)
async def update_recurrence_pattern(
    pattern_id: UUID,
    update: RecurrencePatternUpdate,
    user: CurrentUser,
    service: RecurrencePatternSvc,
) -> RecurrencePatternRead:
    """Edit the rule of a recurrence pattern."""
    try:
        pattern = await service.update_pattern(user.id, pattern_id, update)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    return service.to_read(pattern)


@router.delete("/recurrence-patterns/{pattern_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurrence_pattern(
    pattern_id: UUID,
    user: CurrentUser,
    service: RecurrencePatternSvc,
):
    """Delete a recurrence pattern. Generated tasks are kept."""
    try:
        await service.delete_pattern(user.id, pattern_id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/recurrence-patterns/{pattern_id}/preview", response_model=list[date])
async def preview_recurrence_pattern(
    pattern_id: UUID,
    user: CurrentUser,
    service: RecurrencePatternSvc,
    count: int = Query(5, ge=1, le=100, description="Number of upcoming dates"),
) -> list[date]:
    """Dates the pattern will generate next."""
    try:
        return await service.preview(user.id, pattern_id, count)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
