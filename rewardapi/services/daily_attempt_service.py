import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.mystery_ball_repository import DailyAttemptRepository
from rewardapi.schemas.mystery_ball import DailyAttemptStatus
from rewardapi.utils.timezone_utils import get_today

logger = logging.getLogger(__name__)


class DailyAttemptService:
    """학생별 하루 1회 시도 게이트

    "오늘" 은 서버 설정 타임존(TIMEZONE) 기준 날짜입니다.
    """

    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ):
        self.db = db
        self.attempt_repo = DailyAttemptRepository(db, mirror)
        self._today = today_provider or get_today

    def today(self) -> date:
        return self._today()

    def can_attempt(self, student_id: str) -> bool:
        """오늘 행이 없거나 used=False 이면 True"""
        attempt = self.attempt_repo.get_attempt(student_id, self.today())
        return attempt is None or not attempt.used

    def consume_attempt(self, student_id: str) -> bool:
        """오늘 시도 선점 - 이 호출이 사용 처리했으면 True, 이미 사용했으면 False"""
        claimed = self.attempt_repo.claim_attempt(student_id, self.today())
        if claimed:
            logger.info(f"Daily attempt consumed for student {student_id}")
        else:
            logger.info(f"Daily attempt already used today by student {student_id}")
        return claimed

    def reset_attempt(self, student_id: str) -> None:
        """지급 실패 시 오늘 시도를 되돌림"""
        self.attempt_repo.upsert_attempt(student_id, self.today(), used=False)
        logger.info(f"Daily attempt reset for student {student_id}")

    def get_attempt_status(self, student_id: str) -> DailyAttemptStatus:
        today = self.today()
        attempt = self.attempt_repo.get_attempt(student_id, today)
        return DailyAttemptStatus(
            student_id=student_id,
            attempt_date=today.isoformat(),
            can_attempt=attempt is None or not attempt.used,
        )
