"""
미스터리볼 리포지토리 - 일일 시도 게이트와 결과 기록
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.models.mystery_ball import DailyAttempt, MysteryBallHistory
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.mystery_ball import DailyAttemptEntry, MysteryBallHistoryEntry

logger = logging.getLogger(__name__)


class DailyAttemptRepository(BaseRepository[DailyAttempt, DailyAttemptEntry]):
    def __init__(self, db: Session, mirror: Optional[LocalMirror] = None):
        super().__init__(DailyAttempt, DailyAttemptEntry, db, mirror)

    @staticmethod
    def _attempt_key(student_id: str, attempt_date: date) -> str:
        return f"{student_id}:{attempt_date.isoformat()}"

    def _remember(self, schema: Optional[DailyAttemptEntry]) -> None:
        if schema is None or self.mirror is None:
            return
        self.mirror.put(
            self.table_name,
            self._attempt_key(schema.student_id, schema.attempt_date),
            schema.model_dump(mode="json"),
        )

    def get_attempt(self, student_id: str, attempt_date: date) -> Optional[DailyAttemptEntry]:
        """(student_id, attempt_date) 행 조회 - DB 장애 시 미러 값"""
        self._ensure_clean_session()
        try:
            instance = (
                self.db.query(DailyAttempt)
                .filter(
                    DailyAttempt.student_id == student_id,
                    DailyAttempt.attempt_date == attempt_date,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self._storage_error("read", e)
            logger.warning(f"Falling back to mirror for daily attempt of {student_id}")
            return self._recall(self._attempt_key(student_id, attempt_date))

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema

    def claim_attempt(self, student_id: str, attempt_date: date) -> bool:
        """
        오늘 시도를 조건부로 선점 (행이 없으면 used=True 로 insert, used=False 일 때만 True 로 변경)

        Returns:
            bool: 이 호출이 미사용 -> 사용 전환을 했으면 True, 이미 사용된 날이면 False
        """
        self._ensure_clean_session()
        dialect = self.db.get_bind().dialect.name
        try:
            if dialect in ("postgresql", "sqlite"):
                if dialect == "postgresql":
                    from sqlalchemy.dialects.postgresql import insert
                else:
                    from sqlalchemy.dialects.sqlite import insert

                stmt = insert(DailyAttempt).values(
                    student_id=student_id, attempt_date=attempt_date, used=True
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["student_id", "attempt_date"],
                    set_={"used": True, "updated_at": func.now()},
                    where=DailyAttempt.used.is_(False),
                )
                claimed = self.db.execute(stmt).rowcount == 1
                self.db.commit()
            else:
                claimed = self._claim_with_update(student_id, attempt_date)
        except SQLAlchemyError as e:
            raise self._storage_error("claim", e)

        if claimed:
            self._remember(
                DailyAttemptEntry(student_id=student_id, attempt_date=attempt_date, used=True)
            )
        return claimed

    def _claim_with_update(self, student_id: str, attempt_date: date) -> bool:
        """ON CONFLICT 미지원 DB: UPDATE ... WHERE used = false, 행이 없으면 insert"""
        updated = (
            self.db.query(DailyAttempt)
            .filter(
                DailyAttempt.student_id == student_id,
                DailyAttempt.attempt_date == attempt_date,
                DailyAttempt.used.is_(False),
            )
            .update({DailyAttempt.used: True}, synchronize_session=False)
        )
        if updated:
            self.db.commit()
            return True

        exists = (
            self.db.query(DailyAttempt.id)
            .filter(
                DailyAttempt.student_id == student_id,
                DailyAttempt.attempt_date == attempt_date,
            )
            .first()
        )
        if exists is not None:
            self.db.rollback()
            return False

        try:
            self.db.add(DailyAttempt(student_id=student_id, attempt_date=attempt_date, used=True))
            self.db.commit()
        except IntegrityError:
            # 동시 요청이 먼저 insert 함
            self.db.rollback()
            return False
        return True

    def upsert_attempt(self, student_id: str, attempt_date: date, used: bool) -> DailyAttemptEntry:
        """
        자연키 (student_id, attempt_date) 기준 insert-or-update

        PostgreSQL/SQLite 는 ON CONFLICT DO UPDATE 한 문장으로 처리합니다.
        """
        self._ensure_clean_session()
        dialect = self.db.get_bind().dialect.name
        try:
            if dialect in ("postgresql", "sqlite"):
                if dialect == "postgresql":
                    from sqlalchemy.dialects.postgresql import insert
                else:
                    from sqlalchemy.dialects.sqlite import insert

                stmt = insert(DailyAttempt).values(
                    student_id=student_id, attempt_date=attempt_date, used=used
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["student_id", "attempt_date"],
                    set_={"used": used, "updated_at": func.now()},
                )
                self.db.execute(stmt)
            else:
                updated = (
                    self.db.query(DailyAttempt)
                    .filter(
                        DailyAttempt.student_id == student_id,
                        DailyAttempt.attempt_date == attempt_date,
                    )
                    .update({DailyAttempt.used: used}, synchronize_session=False)
                )
                if not updated:
                    self.db.add(
                        DailyAttempt(student_id=student_id, attempt_date=attempt_date, used=used)
                    )
            self.db.commit()

            instance = (
                self.db.query(DailyAttempt)
                .filter(
                    DailyAttempt.student_id == student_id,
                    DailyAttempt.attempt_date == attempt_date,
                )
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("upsert", e)

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema


class MysteryBallHistoryRepository(BaseRepository[MysteryBallHistory, MysteryBallHistoryEntry]):
    def __init__(self, db: Session):
        super().__init__(MysteryBallHistory, MysteryBallHistoryEntry, db)

    def add(
        self,
        student_id: str,
        result_type: str,
        pokemon_id: Optional[str] = None,
        pokemon_name: Optional[str] = None,
        coins_amount: Optional[int] = None,
        granted: bool = True,
    ) -> MysteryBallHistoryEntry:
        return self.create(
            student_id=student_id,
            result_type=result_type,
            pokemon_id=pokemon_id,
            pokemon_name=pokemon_name,
            coins_amount=coins_amount,
            granted=granted,
        )

    def list_recent(self, student_id: str, limit: int = 10) -> List[MysteryBallHistoryEntry]:
        self._ensure_clean_session()
        try:
            rows = (
                self.db.query(MysteryBallHistory)
                .filter(MysteryBallHistory.student_id == student_id)
                .order_by(desc(MysteryBallHistory.id))
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("read", e)
        return [self._to_schema(row) for row in rows]
