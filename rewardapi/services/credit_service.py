import logging
import math
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.config import Settings, settings as default_settings
from rewardapi.core.exceptions import NotFoundError, StorageError, ValidationError
from rewardapi.providers.events.dispatcher import EventDispatcher
from rewardapi.providers.events.domain_events import CreditsChangedEvent
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.credit_repository import CreditRepository, TeacherRepository
from rewardapi.repositories.ledger_repository import CreditTransactionRepository
from rewardapi.schemas.credits import (
    CreditAction,
    CreditHistoryResponse,
    TeacherCreditBalance,
)
from rewardapi.services.coin_service import is_positive_int

logger = logging.getLogger(__name__)


def calculate_credit_cost(
    action: CreditAction,
    coin_reward: int = 0,
    amount: int = 1,
    config: Optional[Settings] = None,
) -> int:
    """교사 행동별 크레딧 비용

    Args:
        action: 행동 유형
        coin_reward: 숙제 승인 시 지급 코인 (APPROVE_HOMEWORK)
        amount: 지급 코인 수 (AWARD_COINS)

    Returns:
        int: 필요한 크레딧 (항상 1 이상)
    """
    config = config or default_settings
    if action == CreditAction.CREATE_STUDENT:
        return config.CREATE_STUDENT_CREDITS
    if action == CreditAction.ASSIGN_HOMEWORK:
        return config.ASSIGN_HOMEWORK_CREDITS
    if action == CreditAction.APPROVE_HOMEWORK:
        return max(1, math.ceil(coin_reward / config.HOMEWORK_APPROVAL_COINS_PER_CREDIT))
    if action == CreditAction.AWARD_COINS:
        return max(1, amount * config.AWARD_COINS_CREDITS_PER_COIN)
    if action == CreditAction.AWARD_POKEMON:
        return config.AWARD_POKEMON_CREDITS
    if action == CreditAction.DELETE_POKEMON:
        return config.DELETE_POKEMON_CREDITS
    raise ValidationError(f"Unknown credit action: {action}")


class CreditService:
    """교사 크레딧 잔액 관련 비즈니스 로직"""

    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        dispatcher: Optional[EventDispatcher] = None,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.config = config or default_settings
        self.credit_repo = CreditRepository(db, mirror)
        self.teacher_repo = TeacherRepository(db)
        self.transaction_repo = CreditTransactionRepository(db)

    def _ensure_balance(self, teacher_id: str) -> TeacherCreditBalance:
        """잔액 행 조회, 없으면 시작 크레딧과 함께 생성

        Raises:
            NotFoundError: 교사가 존재하지 않을 때
            StorageError: 저장소 장애로 생성하지 못할 때
        """
        balance = self.credit_repo.get_credits(teacher_id)
        if balance is not None:
            return balance

        if not self.teacher_repo.exists(teacher_id):
            raise NotFoundError(f"Teacher {teacher_id} not found")

        starting = self.config.STARTING_TEACHER_CREDITS
        balance = self.credit_repo.create_balance(teacher_id, starting)
        if balance is None:
            # 동시 요청이 먼저 생성함
            balance = self.credit_repo.get_credits(teacher_id)
            if balance is None:
                raise NotFoundError(f"Teacher {teacher_id} has no credit balance")
            return balance

        self._record_transaction(teacher_id, starting, "Initial signup bonus", "signup_bonus", None)
        logger.info(f"Created credit balance for teacher {teacher_id} with {starting} credits")
        return balance

    def get_credits(self, teacher_id: str) -> TeacherCreditBalance:
        return self._ensure_balance(teacher_id)

    def has_credits(self, teacher_id: str, required: int) -> bool:
        """필요 크레딧 보유 여부 - 무제한이면 항상 True"""
        if not teacher_id or not isinstance(required, int) or required < 0:
            return False
        try:
            balance = self._ensure_balance(teacher_id)
        except (NotFoundError, StorageError) as e:
            logger.warning(f"has_credits: balance unavailable for teacher {teacher_id}: {e}")
            return False

        if balance.unlimited_credits:
            return True
        return balance.credits >= required

    def consume_credits(
        self,
        teacher_id: str,
        amount: int,
        reason: str,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> bool:
        """크레딧 차감

        credits - amount, used_credits + amount 를 한 번의 UPDATE 로 처리합니다.
        잔액이 부족하면 아무것도 변경하지 않고 False 를 반환합니다.
        """
        if not teacher_id or not is_positive_int(amount):
            return False
        if not self.has_credits(teacher_id, amount):
            return False

        balance = self.credit_repo.get_credits(teacher_id)
        if balance is not None and balance.unlimited_credits:
            return True

        try:
            updated = self.credit_repo.consume(teacher_id, amount)
        except StorageError:
            logger.error(f"consume_credits failed: teacher={teacher_id} amount={amount}")
            raise

        if updated is None:
            logger.info(f"consume_credits rejected: teacher={teacher_id} amount={amount}")
            return False

        self._record_transaction(teacher_id, -amount, reason, related_entity_type, related_entity_id)
        self._publish(teacher_id, -amount, updated.credits, reason)
        return True

    def add_credits(self, teacher_id: str, amount: int, reason: str = "Admin credit grant") -> TeacherCreditBalance:
        """크레딧 추가 (관리자 지급, 실패한 행동의 환불)"""
        if not is_positive_int(amount):
            raise ValidationError("Amount must be a positive integer")

        self._ensure_balance(teacher_id)
        try:
            updated = self.credit_repo.add(teacher_id, amount)
        except StorageError:
            logger.error(f"add_credits failed: teacher={teacher_id} amount={amount}")
            raise

        if updated is None:
            raise NotFoundError(f"Teacher {teacher_id} has no credit balance")

        self._record_transaction(teacher_id, amount, reason, None, None)
        self._publish(teacher_id, amount, updated.credits, reason)
        logger.info(f"Added {amount} credits to teacher {teacher_id}: {reason}")
        return updated

    def set_unlimited_credits(self, teacher_id: str, enabled: bool) -> TeacherCreditBalance:
        self._ensure_balance(teacher_id)
        updated = self.credit_repo.set_unlimited(teacher_id, enabled)
        if updated is None:
            raise NotFoundError(f"Teacher {teacher_id} has no credit balance")
        logger.info(f"Set unlimited credits for teacher {teacher_id} to {enabled}")
        return updated

    def get_credit_history(self, teacher_id: str, limit: int = 50, offset: int = 0) -> CreditHistoryResponse:
        if limit > 100:
            limit = 100

        balance = self._ensure_balance(teacher_id)
        entries = self.transaction_repo.list_for_teacher(teacher_id, limit=limit + 1, offset=offset)
        return CreditHistoryResponse(
            balance=balance,
            entries=entries[:limit],
            total_count=self.transaction_repo.count({"teacher_id": teacher_id}),
            has_next=len(entries) > limit,
        )

    def _record_transaction(
        self,
        teacher_id: str,
        amount: int,
        reason: str,
        related_entity_type: Optional[str],
        related_entity_id: Optional[str],
    ) -> None:
        try:
            self.transaction_repo.append(
                teacher_id=teacher_id,
                amount=amount,
                reason=reason,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
        except StorageError as e:
            logger.error(
                f"credit_transactions append failed: teacher={teacher_id} amount={amount} reason={reason}: {e}"
            )

    def _publish(self, teacher_id: str, amount: int, credits: int, reason: str) -> None:
        if self.dispatcher is None:
            return
        self.dispatcher.publish(
            CreditsChangedEvent(teacher_id=teacher_id, amount=amount, credits=credits, reason=reason)
        )
