"""
코인/크레딧 감사 기록 모델

잔액 변동마다 1건이 추가되는 append-only 테이블입니다.
amount 는 부호가 있는 값입니다 (양수=지급, 음수=차감).
"""

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class CoinHistory(BaseModel):
    __tablename__ = "coin_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    change_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    # 예: "class", "school", "shop_purchase", "teacher_award", "mystery_ball"
    related_entity_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    related_entity_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class CreditTransaction(BaseModel):
    __tablename__ = "credit_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    related_entity_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    related_entity_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
