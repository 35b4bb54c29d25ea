"""
알림 서비스

NotificationService 는 알림 행을 기록하고,
NotificationSubscriber 는 도메인 이벤트를 받아 자체 세션으로 알림을 남깁니다.
구독자 실패는 EventDispatcher 에서 격리되므로 원장 결과에 영향을 주지 않습니다.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from rewardapi.database.session import get_db_context
from rewardapi.providers.events.domain_events import (
    CoinsChangedEvent,
    CreditsChangedEvent,
    PokemonGrantedEvent,
)
from rewardapi.repositories.credit_repository import TeacherRepository
from rewardapi.repositories.notification_repository import NotificationRepository
from rewardapi.schemas.notifications import NotificationEntry

logger = logging.getLogger(__name__)

STAFF_ACTORS = ("teacher", "admin")


class NotificationService:
    def __init__(self, db: Session):
        self.db = db
        self.notification_repo = NotificationRepository(db)
        self.teacher_repo = TeacherRepository(db)

    def notify(
        self,
        recipient_id: str,
        title: str,
        message: str,
        type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationEntry:
        return self.notification_repo.add_notification(recipient_id, title, message, type, metadata)

    def notify_owners(
        self,
        title: str,
        message: str,
        type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """모든 운영자 교사에게 감사 알림 - 기록한 건수 반환"""
        owner_ids = self.teacher_repo.list_owner_ids()
        for owner_id in owner_ids:
            self.notification_repo.add_admin_notification(owner_id, title, message, type, metadata)
        return len(owner_ids)

    def list_notifications(self, recipient_id: str, admin: bool = False) -> List[NotificationEntry]:
        return self.notification_repo.list_for_recipient(recipient_id, admin=admin)


class NotificationSubscriber:
    """도메인 이벤트 -> 알림"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def on_coins_changed(self, event: CoinsChangedEvent) -> None:
        if event.actor_type not in STAFF_ACTORS:
            return

        actor = event.actor_name or "Your teacher"
        if event.amount >= 0:
            title = "Coins received!"
            message = f"{actor} awarded you {event.amount} coins: {event.reason}"
        else:
            title = "Coins removed"
            message = f"{actor} removed {-event.amount} coins: {event.reason}"
        metadata = {
            "amount": event.amount,
            "new_balance": event.new_balance,
            "actor_id": event.actor_id,
        }

        with get_db_context(self.session_factory) as db:
            service = NotificationService(db)
            service.notify(event.student_id, title, message, "coins", metadata)
            service.notify_owners(
                "Teacher coin adjustment",
                f"{actor} changed student {event.student_id} coins by {event.amount}: {event.reason}",
                "coins_audit",
                {**metadata, "student_id": event.student_id},
            )

    def on_pokemon_granted(self, event: PokemonGrantedEvent) -> None:
        if event.source not in ("teacher_award", "mystery_ball"):
            return

        name = event.pokemon_name or "a Pokemon"
        metadata = {
            "pokemon_id": event.pokemon_id,
            "collection_id": event.collection_id,
            "source": event.source,
        }
        if event.source == "mystery_ball":
            title, message = "Mystery Ball", f"You caught {name} from the Mystery Ball!"
        else:
            actor = event.actor_name or "Your teacher"
            title, message = "New Pokemon!", f"{actor} gave you {name}"

        with get_db_context(self.session_factory) as db:
            service = NotificationService(db)
            service.notify(event.student_id, title, message, "pokemon", metadata)
            if event.actor_type in STAFF_ACTORS:
                service.notify_owners(
                    "Teacher pokemon award",
                    f"{event.actor_name or event.actor_id} gave {name} to student {event.student_id}",
                    "pokemon_audit",
                    {**metadata, "student_id": event.student_id},
                )

    def on_credits_changed(self, event: CreditsChangedEvent) -> None:
        if event.amount <= 0:
            return
        with get_db_context(self.session_factory) as db:
            NotificationService(db).notify(
                event.teacher_id,
                "Credits added",
                f"{event.amount} credits were added to your account: {event.reason}",
                "credits",
                {"amount": event.amount, "credits": event.credits},
            )
