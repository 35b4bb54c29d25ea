from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class DailyAttempt(BaseModel):
    """학생별 하루 1회 미스터리볼 사용 여부"""

    __tablename__ = "daily_attempts"
    __table_args__ = (
        UniqueConstraint("student_id", "attempt_date", name="uq_daily_attempts_student_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    attempt_date: Mapped[date] = mapped_column(Date, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class MysteryBallHistory(BaseModel):
    """미스터리볼 결과 기록 (관찰용, 잔액의 근거가 아님)"""

    __tablename__ = "mystery_ball_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # "pokemon" | "coins"
    result_type: Mapped[str] = mapped_column(String(20), nullable=False)
    pokemon_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    pokemon_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    coins_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    granted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
