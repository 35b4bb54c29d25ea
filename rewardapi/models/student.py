"""
학생 잔액 모델

student_profiles 가 코인 잔액의 단일 기준 테이블입니다.
students 테이블은 구버전 호환용이며 마이그레이션 시에만 읽습니다.
"""

import uuid
from typing import Optional

from sqlalchemy import Integer, String, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


def _uuid() -> str:
    return str(uuid.uuid4())


class StudentProfile(BaseModel):
    __tablename__ = "student_profiles"
    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_student_profiles_coins_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 사용 가능한 코인 잔액 (음수 불가)
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # 누적 사용 코인 (상점 구매 등)
    spent_coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class LegacyStudent(BaseModel):
    """구버전 students 테이블 (읽기 전용)"""

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
