from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends, Path, Query

from rewardapi.containers import Container
from rewardapi.core.exceptions import AuthorizationError
from rewardapi.deps import get_economy_context, require_self_or_teacher
from rewardapi.schemas.context import EconomyContext
from rewardapi.schemas.mystery_ball import (
    DailyAttemptStatus,
    MysteryBallHistoryResponse,
    MysteryBallResult,
)
from rewardapi.services.daily_attempt_service import DailyAttemptService
from rewardapi.services.mystery_ball_service import MysteryBallService

router = APIRouter(prefix="/mystery-ball", tags=["mystery-ball"])


@router.get("/students/{student_id}/status", response_model=DailyAttemptStatus)
@inject
async def get_attempt_status(
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    daily_attempt_service: DailyAttemptService = Depends(
        Provide[Container.services.daily_attempt_service]
    ),
) -> DailyAttemptStatus:
    require_self_or_teacher(context, student_id)
    return daily_attempt_service.get_attempt_status(student_id)


@router.post("/students/{student_id}/roll", response_model=MysteryBallResult)
@inject
async def roll_mystery_ball(
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    mystery_ball_service: MysteryBallService = Depends(
        Provide[Container.services.mystery_ball_service]
    ),
) -> MysteryBallResult:
    """하루 1회 미스터리볼 - 이미 사용했다면 error_code=DAILY_LIMIT_001"""
    if context.actor_id != student_id:
        raise AuthorizationError("Students can only open their own Mystery Ball")
    return mystery_ball_service.roll_mystery_ball(student_id, context=context)


@router.get("/students/{student_id}/history", response_model=MysteryBallHistoryResponse)
@inject
async def get_history(
    student_id: str = Path(..., description="학생 ID"),
    limit: int = Query(10, ge=1, le=50),
    context: EconomyContext = Depends(get_economy_context),
    mystery_ball_service: MysteryBallService = Depends(
        Provide[Container.services.mystery_ball_service]
    ),
) -> MysteryBallHistoryResponse:
    require_self_or_teacher(context, student_id)
    return mystery_ball_service.get_mystery_ball_history(student_id, limit=limit)
