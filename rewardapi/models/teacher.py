import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class Teacher(BaseModel):
    __tablename__ = "teachers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 플랫폼 운영자 - 관리자 알림 수신 대상
    is_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TeacherCredit(BaseModel):
    """교사별 크레딧 잔액 - 교사당 1행"""

    __tablename__ = "teacher_credits"
    __table_args__ = (
        CheckConstraint("credits >= 0", name="ck_teacher_credits_non_negative"),
        CheckConstraint("used_credits >= 0", name="ck_teacher_used_credits_non_negative"),
    )

    teacher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teachers.id"), primary_key=True
    )
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # 누적 사용 크레딧 - 증가만 함
    used_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unlimited_credits: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
