import logging
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.core.exceptions import NotFoundError, StorageError
from rewardapi.providers.events.dispatcher import EventDispatcher
from rewardapi.providers.events.domain_events import CoinsChangedEvent
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.ledger_repository import CoinHistoryRepository
from rewardapi.repositories.student_repository import StudentRepository
from rewardapi.schemas.coins import (
    CoinHistoryResponse,
    CoinTransactionResponse,
    StudentBalance,
)
from rewardapi.schemas.context import EconomyContext

logger = logging.getLogger(__name__)


def is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class CoinService:
    """학생 코인 잔액 관련 비즈니스 로직"""

    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.student_repo = StudentRepository(db, mirror)
        self.history_repo = CoinHistoryRepository(db)

    def find_balance(self, student_id: str) -> Optional[StudentBalance]:
        return self.student_repo.get_balance(student_id)

    def get_balance(self, student_id: str) -> StudentBalance:
        """학생 코인 잔액 조회

        Raises:
            NotFoundError: 학생 잔액 행이 없을 때
        """
        balance = self.student_repo.get_balance(student_id)
        if balance is None:
            raise NotFoundError(f"Student {student_id} not found")
        return balance

    def get_coin_history(self, student_id: str, limit: int = 50, offset: int = 0) -> CoinHistoryResponse:
        """코인 변동 기록 (최신순)"""
        if limit > 100:
            limit = 100

        balance = self.get_balance(student_id)
        entries = self.history_repo.list_for_student(student_id, limit=limit + 1, offset=offset)
        total_count = self.history_repo.count({"user_id": student_id})
        return CoinHistoryResponse(
            balance=balance.coins,
            entries=entries[:limit],
            total_count=total_count,
            has_next=len(entries) > limit,
        )

    def award_coins(
        self,
        student_id: str,
        amount: int,
        reason: str,
        context: Optional[EconomyContext] = None,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> CoinTransactionResponse:
        """코인 지급 (coins = coins + amount)

        Args:
            student_id: 학생 ID
            amount: 지급할 코인 (양의 정수)
            reason: 지급 사유 (coin_history 에 기록)
            context: 호출 주체

        Returns:
            CoinTransactionResponse: 실패 시 success=False 와 error_code
        """
        invalid = self.validate_request(student_id, amount)
        if invalid:
            return invalid

        try:
            balance = self.student_repo.increment_coins(student_id, amount)
        except StorageError:
            logger.error(f"award_coins failed: student={student_id} amount={amount}")
            raise

        if balance is None:
            return self._not_found(student_id)

        transaction_id = self._record_history(
            student_id, amount, reason, related_entity_type, related_entity_id
        )
        logger.info(f"Awarded {amount} coins to student {student_id}: {reason}")
        self._publish(
            student_id, amount, balance.coins, reason, context,
            related_entity_type, related_entity_id,
        )
        return CoinTransactionResponse(
            success=True,
            student_id=student_id,
            delta_coins=amount,
            new_balance=balance.coins,
            transaction_id=transaction_id,
            message=f"Awarded {amount} coins",
        )

    def remove_coins(
        self,
        student_id: str,
        amount: int,
        reason: str,
        context: Optional[EconomyContext] = None,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> CoinTransactionResponse:
        """코인 차감 - 잔액보다 많이 차감하면 0 으로 보정"""
        invalid = self.validate_request(student_id, amount)
        if invalid:
            return invalid

        try:
            removed = self.student_repo.decrement_coins_clamped(student_id, amount)
        except StorageError:
            logger.error(f"remove_coins failed: student={student_id} amount={amount}")
            raise

        if removed is None:
            return self._not_found(student_id)

        # 기록하는 차감량은 실제로 적용된 UPDATE 기준
        balance, applied = removed
        transaction_id = self._record_history(
            student_id, -applied, reason, related_entity_type, related_entity_id
        )
        logger.info(f"Removed {applied} coins from student {student_id}: {reason}")
        self._publish(
            student_id, -applied, balance.coins, reason, context,
            related_entity_type, related_entity_id,
        )
        return CoinTransactionResponse(
            success=True,
            student_id=student_id,
            delta_coins=-applied,
            new_balance=balance.coins,
            transaction_id=transaction_id,
            message=f"Removed {applied} coins",
        )

    def debit_coins(
        self,
        student_id: str,
        amount: int,
        reason: str,
        context: Optional[EconomyContext] = None,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> CoinTransactionResponse:
        """엄격 차감 (구매용) - 잔액이 부족하면 아무것도 변경하지 않고 실패"""
        invalid = self.validate_request(student_id, amount)
        if invalid:
            return invalid

        try:
            balance = self.student_repo.decrement_coins_strict(
                student_id, amount, count_as_spent=True
            )
        except StorageError:
            logger.error(f"debit_coins failed: student={student_id} amount={amount}")
            raise

        if balance is None:
            current = self.student_repo.get_balance(student_id)
            if current is None:
                return self._not_found(student_id)
            return CoinTransactionResponse(
                success=False,
                student_id=student_id,
                new_balance=current.coins,
                message=f"You need {amount} coins but only have {current.coins}",
                error_code="BALANCE_001",
            )

        transaction_id = self._record_history(
            student_id, -amount, reason, related_entity_type, related_entity_id
        )
        self._publish(
            student_id, -amount, balance.coins, reason, context,
            related_entity_type, related_entity_id,
        )
        return CoinTransactionResponse(
            success=True,
            student_id=student_id,
            delta_coins=-amount,
            new_balance=balance.coins,
            transaction_id=transaction_id,
            message=f"Debited {amount} coins",
        )

    def validate_request(self, student_id: str, amount) -> Optional[CoinTransactionResponse]:
        if not student_id:
            return CoinTransactionResponse(
                success=False,
                student_id=student_id or "",
                message="Student id is required",
                error_code="VALIDATION_001",
            )
        if not is_positive_int(amount):
            return CoinTransactionResponse(
                success=False,
                student_id=student_id,
                message="Amount must be a positive integer",
                error_code="VALIDATION_001",
            )
        return None

    def _not_found(self, student_id: str) -> CoinTransactionResponse:
        return CoinTransactionResponse(
            success=False,
            student_id=student_id,
            message=f"Student {student_id} not found",
            error_code="NOT_FOUND_001",
        )

    def _record_history(
        self,
        student_id: str,
        change_amount: int,
        reason: str,
        related_entity_type: Optional[str],
        related_entity_id: Optional[str],
    ) -> Optional[int]:
        """coin_history 추가 - 실패해도 잔액 변경은 유지"""
        try:
            entry = self.history_repo.append(
                user_id=student_id,
                change_amount=change_amount,
                reason=reason,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
            return entry.id
        except StorageError as e:
            logger.error(
                f"coin_history append failed: student={student_id} amount={change_amount} reason={reason}: {e}"
            )
            return None

    def _publish(
        self,
        student_id: str,
        amount: int,
        new_balance: int,
        reason: str,
        context: Optional[EconomyContext],
        related_entity_type: Optional[str],
        related_entity_id: Optional[str],
    ) -> None:
        if self.dispatcher is None:
            return
        self.dispatcher.publish(
            CoinsChangedEvent(
                student_id=student_id,
                amount=amount,
                new_balance=new_balance,
                reason=reason,
                actor_id=context.actor_id if context else None,
                actor_type=context.actor_type.value if context else None,
                actor_name=context.display_name if context else None,
                related_entity_type=related_entity_type,
                related_entity_id=related_entity_id,
            )
        )
