from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from rewardapi.models.notification import AdminNotification, Notification
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.notifications import NotificationEntry


class NotificationRepository(BaseRepository[Notification, NotificationEntry]):
    """학생/교사 알림과 운영자 알림 저장소"""

    def __init__(self, db: Session):
        super().__init__(Notification, NotificationEntry, db)

    def _to_schema(self, model_instance: Any) -> Optional[NotificationEntry]:
        if model_instance is None:
            return None
        data = model_instance.to_row()
        data["metadata"] = data.pop("notification_metadata", None)
        return NotificationEntry.model_validate(data)

    def add_notification(
        self,
        recipient_id: str,
        title: str,
        message: str,
        type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationEntry:
        return self.create(
            recipient_id=recipient_id,
            title=title,
            message=message,
            type=type,
            notification_metadata=metadata,
        )

    def add_admin_notification(
        self,
        recipient_id: str,
        title: str,
        message: str,
        type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationEntry:
        instance = AdminNotification(
            recipient_id=recipient_id,
            title=title,
            message=message,
            type=type,
            notification_metadata=metadata,
        )
        self.db.add(instance)
        self.db.commit()
        return self._to_schema(instance)

    def list_for_recipient(self, recipient_id: str, admin: bool = False) -> List[NotificationEntry]:
        model = AdminNotification if admin else Notification
        rows = (
            self.db.query(model)
            .filter(model.recipient_id == recipient_id)
            .order_by(desc(model.id))
            .all()
        )
        return [self._to_schema(row) for row in rows]
