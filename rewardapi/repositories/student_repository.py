"""
학생 코인 잔액 리포지토리

잔액 변경은 모두 저장소 수준의 원자적 UPDATE 로 처리합니다:
- 지급: coins = coins + :amount
- 엄격 차감 (구매): coins = coins - :amount WHERE coins >= :amount
- 보정 차감 (교사 차감): coins >= :amount 이면 그대로, 아니면 WHERE coins = :current 로 잔액 전부 (compare-and-set)
애플리케이션에서 읽은 값으로 새 잔액을 계산해 덮어쓰지 않습니다.
"""

import logging
import uuid
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.core.exceptions import StorageError
from rewardapi.models.student import StudentProfile
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.coins import StudentBalance

logger = logging.getLogger(__name__)


class StudentRepository(BaseRepository[StudentProfile, StudentBalance]):
    schema_key_field = "student_id"
    # 보정 차감 compare-and-set 재시도 횟수
    max_clamp_attempts = 5

    def __init__(self, db: Session, mirror: Optional[LocalMirror] = None):
        super().__init__(StudentProfile, StudentBalance, db, mirror)

    def _to_schema(self, model_instance: StudentProfile) -> Optional[StudentBalance]:
        if model_instance is None:
            return None
        return StudentBalance(
            student_id=model_instance.id,
            coins=model_instance.coins,
            spent_coins=model_instance.spent_coins or 0,
        )

    def get_balance(self, student_id: str) -> Optional[StudentBalance]:
        """
        학생 잔액 조회

        Returns:
            StudentBalance | None: 학생이 없으면 None (DB 장애 시 미러 값)
        """
        return self.get_by_id(student_id)

    def create_student(
        self,
        username: str,
        display_name: Optional[str] = None,
        coins: int = 0,
        student_id: Optional[str] = None,
    ) -> StudentBalance:
        return self.create(
            id=student_id or str(uuid.uuid4()),
            username=username,
            display_name=display_name,
            coins=coins,
        )

    def _apply_atomic_update(self, student_id: str, condition, values: dict) -> Optional[StudentBalance]:
        """
        단일 UPDATE 문으로 잔액 변경 후 최신 잔액을 다시 읽어 반환

        Returns:
            StudentBalance | None: 조건에 맞는 행이 없으면 None
        """
        self._ensure_clean_session()
        try:
            query = self.db.query(StudentProfile).filter(StudentProfile.id == student_id)
            if condition is not None:
                query = query.filter(condition)
            updated = query.update(values, synchronize_session=False)
            self.db.commit()

            if not updated:
                return None

            instance = (
                self.db.query(StudentProfile)
                .filter(StudentProfile.id == student_id)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("update", e)

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema

    def increment_coins(self, student_id: str, amount: int) -> Optional[StudentBalance]:
        """coins = coins + amount"""
        return self._apply_atomic_update(
            student_id, None, {StudentProfile.coins: StudentProfile.coins + amount}
        )

    def decrement_coins_strict(
        self, student_id: str, amount: int, count_as_spent: bool = False
    ) -> Optional[StudentBalance]:
        """잔액이 충분할 때만 차감 - 부족하거나 학생이 없으면 None"""
        values = {StudentProfile.coins: StudentProfile.coins - amount}
        if count_as_spent:
            values[StudentProfile.spent_coins] = StudentProfile.spent_coins + amount
        return self._apply_atomic_update(
            student_id, StudentProfile.coins >= amount, values
        )

    def _current_coins(self, student_id: str) -> Optional[int]:
        try:
            return (
                self.db.query(StudentProfile.coins)
                .filter(StudentProfile.id == student_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("read", e)

    def decrement_coins_clamped(
        self, student_id: str, amount: int
    ) -> Optional[Tuple[StudentBalance, int]]:
        """
        잔액보다 큰 차감은 0 으로 보정

        실제 차감량은 조건이 맞은 UPDATE 에서 결정됩니다:
        1. coins >= amount 이면 amount 만큼 차감
        2. 아니면 읽은 잔액 c 에 대해 WHERE coins = c 로 c 만큼 차감 (그 사이 잔액이 바뀌면 1 부터 재시도)

        Returns:
            (StudentBalance, 실제 차감량) | None: 학생이 없으면 None

        Raises:
            StorageError: 경합으로 재시도 횟수를 모두 소진했을 때
        """
        for _ in range(self.max_clamp_attempts):
            balance = self._apply_atomic_update(
                student_id, StudentProfile.coins >= amount,
                {StudentProfile.coins: StudentProfile.coins - amount},
            )
            if balance is not None:
                return balance, amount

            current = self._current_coins(student_id)
            if current is None:
                return None

            balance = self._apply_atomic_update(
                student_id, StudentProfile.coins == current,
                {StudentProfile.coins: StudentProfile.coins - current},
            )
            if balance is not None:
                return balance, current

        logger.error(f"Clamped decrement gave up after concurrent updates: student={student_id}")
        raise StorageError(
            message="Balance changed concurrently. Please try again.",
            details={"operation": "decrement_clamped", "table": self.table_name},
        )
