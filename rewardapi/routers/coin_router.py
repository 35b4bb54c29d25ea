"""
코인 API 라우터

- GET  /students/{student_id}/coins: 잔액 조회 (본인 또는 교사)
- GET  /students/{student_id}/coins/history: 변동 기록
- POST /students/{student_id}/coins/award: 교사 코인 지급 (크레딧 소모)
- POST /students/{student_id}/coins/remove: 교사 코인 차감 (0 으로 보정)
"""

import logging

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends, Path, Query

from rewardapi.containers import Container
from rewardapi.deps import get_economy_context, require_self_or_teacher, require_teacher
from rewardapi.schemas.coins import (
    CoinHistoryResponse,
    CoinTransactionRequest,
    CoinTransactionResponse,
    StudentBalance,
)
from rewardapi.schemas.context import EconomyContext
from rewardapi.services.coin_service import CoinService
from rewardapi.services.teacher_action_service import TeacherActionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["coins"])


@router.get("/{student_id}/coins", response_model=StudentBalance)
@inject
async def get_balance(
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    coin_service: CoinService = Depends(Provide[Container.services.coin_service]),
) -> StudentBalance:
    require_self_or_teacher(context, student_id)
    return coin_service.get_balance(student_id)


@router.get("/{student_id}/coins/history", response_model=CoinHistoryResponse)
@inject
async def get_coin_history(
    student_id: str = Path(..., description="학생 ID"),
    limit: int = Query(50, ge=1, le=100, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    context: EconomyContext = Depends(get_economy_context),
    coin_service: CoinService = Depends(Provide[Container.services.coin_service]),
) -> CoinHistoryResponse:
    require_self_or_teacher(context, student_id)
    return coin_service.get_coin_history(student_id, limit=limit, offset=offset)


@router.post("/{student_id}/coins/award", response_model=CoinTransactionResponse)
@inject
async def award_coins(
    request: CoinTransactionRequest,
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    teacher_action_service: TeacherActionService = Depends(
        Provide[Container.services.teacher_action_service]
    ),
) -> CoinTransactionResponse:
    """
    교사 코인 지급

    지급 코인 수만큼 교사 크레딧이 소모됩니다.
    크레딧이 부족하면 success=False, error_code=BALANCE_001 로 응답합니다.
    """
    require_teacher(context)
    return teacher_action_service.award_coins(
        context, student_id, request.amount, request.reason
    )


@router.post("/{student_id}/coins/remove", response_model=CoinTransactionResponse)
@inject
async def remove_coins(
    request: CoinTransactionRequest,
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    coin_service: CoinService = Depends(Provide[Container.services.coin_service]),
) -> CoinTransactionResponse:
    require_teacher(context)
    return coin_service.remove_coins(
        student_id,
        request.amount,
        request.reason,
        context=context,
        related_entity_type=request.related_entity_type,
        related_entity_id=request.related_entity_id,
    )
