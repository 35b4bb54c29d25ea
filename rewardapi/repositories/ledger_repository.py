"""
코인/크레딧 감사 기록 리포지토리 (append-only)
"""

from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.models.ledger import CoinHistory, CreditTransaction
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.coins import CoinHistoryEntry
from rewardapi.schemas.credits import CreditTransactionEntry


class CoinHistoryRepository(BaseRepository[CoinHistory, CoinHistoryEntry]):
    def __init__(self, db: Session):
        super().__init__(CoinHistory, CoinHistoryEntry, db)

    def append(
        self,
        user_id: str,
        change_amount: int,
        reason: str,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> CoinHistoryEntry:
        return self.create(
            user_id=user_id,
            change_amount=change_amount,
            reason=reason,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )

    def list_for_student(self, user_id: str, limit: int = 50, offset: int = 0) -> List[CoinHistoryEntry]:
        """최신순 코인 변동 기록"""
        self._ensure_clean_session()
        try:
            rows = (
                self.db.query(CoinHistory)
                .filter(CoinHistory.user_id == user_id)
                .order_by(desc(CoinHistory.id))
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("read", e)
        return [self._to_schema(row) for row in rows]


class CreditTransactionRepository(BaseRepository[CreditTransaction, CreditTransactionEntry]):
    def __init__(self, db: Session):
        super().__init__(CreditTransaction, CreditTransactionEntry, db)

    def append(
        self,
        teacher_id: str,
        amount: int,
        reason: str,
        related_entity_type: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> CreditTransactionEntry:
        return self.create(
            teacher_id=teacher_id,
            amount=amount,
            reason=reason,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
        )

    def list_for_teacher(self, teacher_id: str, limit: int = 50, offset: int = 0) -> List[CreditTransactionEntry]:
        self._ensure_clean_session()
        try:
            rows = (
                self.db.query(CreditTransaction)
                .filter(CreditTransaction.teacher_id == teacher_id)
                .order_by(desc(CreditTransaction.id))
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("read", e)
        return [self._to_schema(row) for row in rows]
