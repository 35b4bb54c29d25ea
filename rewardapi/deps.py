from typing import Optional

from fastapi import Header

from rewardapi.core.exceptions import AuthorizationError, ValidationError
from rewardapi.schemas.context import ActorType, EconomyContext


def get_economy_context(
    x_actor_id: Optional[str] = Header(None),
    x_actor_type: Optional[str] = Header(None),
    x_actor_name: Optional[str] = Header(None),
) -> EconomyContext:
    """요청 헤더로 호출 주체 구성 (인증은 앞단 게이트웨이 책임)"""
    if not x_actor_id or not x_actor_type:
        raise AuthorizationError("X-Actor-Id and X-Actor-Type headers are required")
    try:
        actor_type = ActorType(x_actor_type.lower())
    except ValueError:
        raise ValidationError(f"Unknown actor type: {x_actor_type}")
    return EconomyContext(actor_id=x_actor_id, actor_type=actor_type, actor_name=x_actor_name)


def require_teacher(context: EconomyContext) -> EconomyContext:
    if not context.is_teacher:
        raise AuthorizationError("Only teachers can perform this action")
    return context


def require_self_or_teacher(context: EconomyContext, student_id: str) -> EconomyContext:
    """학생은 본인 데이터만, 교사/관리자는 모든 학생 데이터 접근"""
    if context.is_teacher or context.actor_id == student_id:
        return context
    raise AuthorizationError("You can only access your own data")
