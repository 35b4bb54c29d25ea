import pytest
from datetime import date
from unittest.mock import Mock

from sqlalchemy.exc import OperationalError

from rewardapi.models import DailyAttempt
from rewardapi.services.daily_attempt_service import DailyAttemptService


class FixedClock:
    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock():
    return FixedClock(date(2026, 3, 2))


@pytest.fixture
def attempt_service(db_session, mirror, clock):
    return DailyAttemptService(db_session, mirror, today_provider=clock)


class TestDailyAttemptGate:
    """하루 1회 게이트 테스트"""

    def test_single_use_per_day(self, attempt_service):
        """consume 전 True, 후 False"""
        assert attempt_service.can_attempt("s1") is True

        attempt_service.consume_attempt("s1")

        assert attempt_service.can_attempt("s1") is False

    def test_consume_is_a_one_time_claim(self, attempt_service, db_session, session_factory, clock):
        """같은 날 두 번째 선점은 False (다른 세션에서도 동일)"""
        assert attempt_service.consume_attempt("s1") is True

        other = DailyAttemptService(session_factory(), today_provider=clock)
        assert other.consume_attempt("s1") is False
        assert attempt_service.consume_attempt("s1") is False

        rows = db_session.query(DailyAttempt).filter_by(student_id="s1").all()
        assert len(rows) == 1

    def test_claim_after_reset_succeeds_again(self, attempt_service):
        attempt_service.consume_attempt("s1")
        attempt_service.reset_attempt("s1")

        assert attempt_service.consume_attempt("s1") is True

    def test_new_day_resets_gate(self, attempt_service, clock):
        attempt_service.consume_attempt("s1")

        clock.today = date(2026, 3, 3)

        assert attempt_service.can_attempt("s1") is True

    def test_students_are_independent(self, attempt_service):
        attempt_service.consume_attempt("s1")

        assert attempt_service.can_attempt("s2") is True

    def test_upsert_keeps_single_row(self, attempt_service, db_session):
        """같은 날 여러 번 upsert 해도 행은 1개"""
        attempt_service.consume_attempt("s1")
        attempt_service.reset_attempt("s1")
        attempt_service.consume_attempt("s1")

        rows = db_session.query(DailyAttempt).filter_by(student_id="s1").all()
        assert len(rows) == 1
        assert rows[0].used is True

    def test_reset_reopens_gate(self, attempt_service):
        attempt_service.consume_attempt("s1")

        attempt_service.reset_attempt("s1")

        assert attempt_service.can_attempt("s1") is True

    def test_status(self, attempt_service):
        attempt_service.consume_attempt("s1")

        status = attempt_service.get_attempt_status("s1")

        assert status.attempt_date == "2026-03-02"
        assert status.can_attempt is False

    def test_gate_read_falls_back_to_mirror(self, attempt_service, mirror, clock):
        """DB 장애 시 미러에 남은 오늘 기록으로 판단"""
        attempt_service.consume_attempt("s1")

        broken_db = Mock()
        broken_db.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        offline = DailyAttemptService(broken_db, mirror, today_provider=clock)

        assert offline.can_attempt("s1") is False
        assert offline.can_attempt("s2") is True
