"""
교사 크레딧 API 라우터

- GET  /teachers/credits/cost: 행동별 크레딧 비용
- GET  /teachers/{teacher_id}/credits: 잔액 (없으면 시작 크레딧과 함께 생성)
- GET  /teachers/{teacher_id}/credits/check: 필요 크레딧 보유 여부
- GET  /teachers/{teacher_id}/credits/history: 크레딧 거래 기록
- POST /teachers/{teacher_id}/credits/add: 관리자 크레딧 지급
- PUT  /teachers/{teacher_id}/credits/unlimited: 관리자 무제한 설정
"""

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends, Path, Query

from rewardapi.containers import Container
from rewardapi.core.exceptions import AuthorizationError
from rewardapi.deps import get_economy_context
from rewardapi.schemas.context import ActorType, EconomyContext
from rewardapi.schemas.credits import (
    CreditAction,
    CreditAdjustRequest,
    CreditCheckResponse,
    CreditHistoryResponse,
    TeacherCreditBalance,
    UnlimitedCreditsRequest,
)
from rewardapi.services.credit_service import CreditService, calculate_credit_cost

router = APIRouter(prefix="/teachers", tags=["credits"])


def _require_owner_or_admin(context: EconomyContext, teacher_id: str) -> None:
    if context.actor_type == ActorType.ADMIN:
        return
    if context.actor_type == ActorType.TEACHER and context.actor_id == teacher_id:
        return
    raise AuthorizationError("You can only access your own credits")


def _require_admin(context: EconomyContext) -> None:
    if context.actor_type != ActorType.ADMIN:
        raise AuthorizationError("Admin privileges required")


@router.get("/credits/cost")
async def get_credit_cost(
    action: CreditAction = Query(..., description="행동 유형"),
    coin_reward: int = Query(0, ge=0, description="숙제 승인 코인"),
    amount: int = Query(1, ge=1, description="지급 코인 수"),
) -> dict:
    return {
        "action": action.value,
        "credits": calculate_credit_cost(action, coin_reward=coin_reward, amount=amount),
    }


@router.get("/{teacher_id}/credits", response_model=TeacherCreditBalance)
@inject
async def get_credits(
    teacher_id: str = Path(..., description="교사 ID"),
    context: EconomyContext = Depends(get_economy_context),
    credit_service: CreditService = Depends(Provide[Container.services.credit_service]),
) -> TeacherCreditBalance:
    _require_owner_or_admin(context, teacher_id)
    return credit_service.get_credits(teacher_id)


@router.get("/{teacher_id}/credits/check", response_model=CreditCheckResponse)
@inject
async def check_credits(
    teacher_id: str = Path(..., description="교사 ID"),
    required: int = Query(..., ge=0, description="필요 크레딧"),
    context: EconomyContext = Depends(get_economy_context),
    credit_service: CreditService = Depends(Provide[Container.services.credit_service]),
) -> CreditCheckResponse:
    _require_owner_or_admin(context, teacher_id)
    return CreditCheckResponse(
        teacher_id=teacher_id,
        required=required,
        has_credits=credit_service.has_credits(teacher_id, required),
    )


@router.get("/{teacher_id}/credits/history", response_model=CreditHistoryResponse)
@inject
async def get_credit_history(
    teacher_id: str = Path(..., description="교사 ID"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    context: EconomyContext = Depends(get_economy_context),
    credit_service: CreditService = Depends(Provide[Container.services.credit_service]),
) -> CreditHistoryResponse:
    _require_owner_or_admin(context, teacher_id)
    return credit_service.get_credit_history(teacher_id, limit=limit, offset=offset)


@router.post("/{teacher_id}/credits/add", response_model=TeacherCreditBalance)
@inject
async def add_credits(
    request: CreditAdjustRequest,
    teacher_id: str = Path(..., description="교사 ID"),
    context: EconomyContext = Depends(get_economy_context),
    credit_service: CreditService = Depends(Provide[Container.services.credit_service]),
) -> TeacherCreditBalance:
    _require_admin(context)
    return credit_service.add_credits(teacher_id, request.amount, request.reason)


@router.put("/{teacher_id}/credits/unlimited", response_model=TeacherCreditBalance)
@inject
async def set_unlimited_credits(
    request: UnlimitedCreditsRequest,
    teacher_id: str = Path(..., description="교사 ID"),
    context: EconomyContext = Depends(get_economy_context),
    credit_service: CreditService = Depends(Provide[Container.services.credit_service]),
) -> TeacherCreditBalance:
    _require_admin(context)
    return credit_service.set_unlimited_credits(teacher_id, request.enabled)
