from unittest.mock import Mock

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from rewardapi.main import app
from rewardapi.schemas.mystery_ball import DailyAttemptStatus, MysteryBallResult

STUDENT = {"X-Actor-Id": "s1", "X-Actor-Type": "student"}
TEACHER = {"X-Actor-Id": "t1", "X-Actor-Type": "teacher"}


@pytest.fixture
def mystery_ball_service():
    service = Mock()
    service.roll_mystery_ball.return_value = MysteryBallResult(
        success=False,
        message="You have already used your Mystery Ball today",
        error_code="DAILY_LIMIT_001",
    )
    return service


@pytest.fixture
def daily_attempt_service():
    service = Mock()
    service.get_attempt_status.return_value = DailyAttemptStatus(
        student_id="s1", attempt_date="2026-10-19", can_attempt=True
    )
    return service


@pytest.fixture(autouse=True)
def patch_services(mystery_ball_service, daily_attempt_service):
    container = app.container  # type: ignore
    container.services.mystery_ball_service.override(providers.Object(mystery_ball_service))
    container.services.daily_attempt_service.override(providers.Object(daily_attempt_service))
    yield
    container.services.mystery_ball_service.reset_override()
    container.services.daily_attempt_service.reset_override()


client = TestClient(app)


def test_status_for_teacher():
    res = client.get("/api/v1/mystery-ball/students/s1/status", headers=TEACHER)
    assert res.status_code == 200
    assert res.json()["can_attempt"] is True


def test_second_roll_reports_daily_limit():
    res = client.post("/api/v1/mystery-ball/students/s1/roll", headers=STUDENT)
    assert res.status_code == 200
    assert res.json()["error_code"] == "DAILY_LIMIT_001"


def test_teacher_cannot_roll_for_student(mystery_ball_service):
    res = client.post("/api/v1/mystery-ball/students/s1/roll", headers=TEACHER)
    assert res.status_code == 403
    mystery_ball_service.roll_mystery_ball.assert_not_called()
