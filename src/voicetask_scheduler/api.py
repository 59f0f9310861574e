"""Scheduling API routes."""

import logging
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request, status
from fastapi.responses import JSONResponse

from voicetask_scheduler.exceptions import (
    AuthenticationMissingError,
    DataFetchError,
    SchedulerError,
    SchedulerValidationError,
    require_user_id,
)
from voicetask_scheduler.models import (
    RankedDay,
    ScheduleSuggestion,
    UserPreferences,
    UserPreferencesUpdate,
)
from voicetask_scheduler.service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schedule", tags=["schedule"])


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Caller identity forwarded by the authenticating gateway."""
    return require_user_id(x_user_id)


def get_scheduling_service(request: Request) -> SchedulingService:
    return request.app.state.scheduling_service


UserId = Annotated[str, Depends(get_current_user_id)]
Service = Annotated[SchedulingService, Depends(get_scheduling_service)]


@router.get("/best-slot", response_model=ScheduleSuggestion)
async def get_best_slot(
    user_id: UserId,
    service: Service,
    duration: Annotated[int, Query(gt=0, le=24 * 60)] = 60,
) -> ScheduleSuggestion:
    """Suggest the best slot for a new task of ``duration`` minutes."""
    return await service.find_best_slot(duration, user_id)


@router.get("/ranked-days", response_model=list[RankedDay])
async def get_ranked_days(
    user_id: UserId, service: Service, start: date, end: date
) -> list[RankedDay]:
    """Rank the days in ``[start, end]`` busiest first."""
    return await service.rank_days(start, end, user_id)


@router.get("/busiest-day", response_model=RankedDay | None)
async def get_busiest_day(
    user_id: UserId, service: Service, start: date, end: date
) -> RankedDay | None:
    return await service.busiest_day(start, end, user_id)


@router.get("/least-busy-day", response_model=RankedDay | None)
async def get_least_busy_day(
    user_id: UserId, service: Service, start: date, end: date
) -> RankedDay | None:
    return await service.least_busy_day(start, end, user_id)


@router.get("/summary")
async def get_day_summary(
    user_id: UserId,
    service: Service,
    start: date,
    end: date,
    least_busy: Annotated[bool, Query(alias="leastBusy")] = False,
) -> dict[str, str]:
    """Plain-language busiest (or least busy) day answer for the range."""
    summary = await service.summarize_days(start, end, user_id, least_busy=least_busy)
    return {"summary": summary}


@router.get("/preferences", response_model=UserPreferences)
async def get_preferences(user_id: UserId, service: Service) -> UserPreferences:
    return await service.get_preferences(user_id)


@router.patch("/preferences", response_model=UserPreferences)
async def update_preferences(
    user_id: UserId, service: Service, update: UserPreferencesUpdate
) -> UserPreferences:
    return await service.update_preferences(user_id, update)


@router.get("/metrics")
async def get_metrics(service: Service) -> dict[str, Any]:
    return service.metrics_snapshot()


def _status_for(exc: SchedulerError) -> int:
    if isinstance(exc, AuthenticationMissingError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, SchedulerValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, DataFetchError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def scheduler_exception_handler(request: Request, exc: SchedulerError):
    """Handle scheduling errors"""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"Scheduling request failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "path": str(request.url),
        },
    )


def create_app(service: SchedulingService) -> FastAPI:
    app = FastAPI(title="VoiceTask Scheduler API", version="0.1.0")
    app.state.scheduling_service = service
    app.add_exception_handler(SchedulerError, scheduler_exception_handler)
    app.include_router(router)
    return app
