"""
교사 크레딧 리포지토리

consume: credits - a, used_credits + a WHERE credits >= a (단일 UPDATE)
add:     credits + a
"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.core.exceptions import StorageError
from rewardapi.models.teacher import Teacher, TeacherCredit
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.credits import TeacherCreditBalance


class CreditRepository(BaseRepository[TeacherCredit, TeacherCreditBalance]):
    key_column = "teacher_id"
    schema_key_field = "teacher_id"

    def __init__(self, db: Session, mirror: Optional[LocalMirror] = None):
        super().__init__(TeacherCredit, TeacherCreditBalance, db, mirror)

    def get_credits(self, teacher_id: str) -> Optional[TeacherCreditBalance]:
        return self.get_by_id(teacher_id)

    def create_balance(self, teacher_id: str, credits: int) -> Optional[TeacherCreditBalance]:
        """
        잔액 행 생성

        Returns:
            TeacherCreditBalance | None: 동시 요청이 먼저 생성했다면 None
        """
        self._ensure_clean_session()
        try:
            instance = TeacherCredit(
                teacher_id=teacher_id,
                credits=credits,
                used_credits=0,
                unlimited_credits=False,
            )
            self.db.add(instance)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        except SQLAlchemyError as e:
            raise self._storage_error("insert", e)

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema

    def _apply_atomic_update(self, teacher_id: str, condition, values: dict) -> Optional[TeacherCreditBalance]:
        self._ensure_clean_session()
        try:
            query = self.db.query(TeacherCredit).filter(TeacherCredit.teacher_id == teacher_id)
            if condition is not None:
                query = query.filter(condition)
            updated = query.update(values, synchronize_session=False)
            self.db.commit()

            if not updated:
                return None

            instance = (
                self.db.query(TeacherCredit)
                .filter(TeacherCredit.teacher_id == teacher_id)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("update", e)

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema

    def consume(self, teacher_id: str, amount: int) -> Optional[TeacherCreditBalance]:
        """잔액이 충분할 때만 차감 - 부족하면 None (변경 없음)"""
        return self._apply_atomic_update(
            teacher_id,
            TeacherCredit.credits >= amount,
            {
                TeacherCredit.credits: TeacherCredit.credits - amount,
                TeacherCredit.used_credits: TeacherCredit.used_credits + amount,
            },
        )

    def add(self, teacher_id: str, amount: int) -> Optional[TeacherCreditBalance]:
        return self._apply_atomic_update(
            teacher_id, None, {TeacherCredit.credits: TeacherCredit.credits + amount}
        )

    def set_unlimited(self, teacher_id: str, enabled: bool) -> Optional[TeacherCreditBalance]:
        return self.update(teacher_id, unlimited_credits=enabled)


class TeacherRepository:
    """teachers 테이블 조회 (계정 관리는 외부 책임)"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, teacher_id: str) -> bool:
        try:
            return (
                self.db.query(Teacher.id).filter(Teacher.id == teacher_id).first()
                is not None
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(details={"operation": "read", "table": "teachers"}) from e

    def create_teacher(
        self,
        username: str,
        display_name: Optional[str] = None,
        is_owner: bool = False,
        teacher_id: Optional[str] = None,
    ) -> str:
        instance = Teacher(username=username, display_name=display_name, is_owner=is_owner)
        if teacher_id:
            instance.id = teacher_id
        self.db.add(instance)
        self.db.commit()
        return instance.id

    def list_owner_ids(self) -> List[str]:
        rows = self.db.query(Teacher.id).filter(Teacher.is_owner.is_(True)).all()
        return [row[0] for row in rows]
