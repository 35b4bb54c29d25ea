from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class Notification(BaseModel):
    """학생/교사 대상 알림"""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    notification_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class AdminNotification(BaseModel):
    """플랫폼 운영자 대상 감사 알림"""

    __tablename__ = "admin_notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    notification_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
