from unittest.mock import Mock

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from rewardapi.main import app
from rewardapi.schemas.credits import TeacherCreditBalance

TEACHER = {"X-Actor-Id": "t1", "X-Actor-Type": "teacher"}
ADMIN = {"X-Actor-Id": "root", "X-Actor-Type": "admin"}


@pytest.fixture
def credit_service():
    service = Mock()
    service.get_credits.return_value = TeacherCreditBalance(teacher_id="t1", credits=100)
    service.has_credits.return_value = False
    service.add_credits.return_value = TeacherCreditBalance(teacher_id="t1", credits=150)
    return service


@pytest.fixture(autouse=True)
def patch_credit_service(credit_service):
    container = app.container  # type: ignore
    container.services.credit_service.override(providers.Object(credit_service))
    yield
    container.services.credit_service.reset_override()


client = TestClient(app)


def test_teacher_reads_own_credits():
    res = client.get("/api/v1/teachers/t1/credits", headers=TEACHER)
    assert res.status_code == 200
    assert res.json()["credits"] == 100


def test_teacher_cannot_read_other_teacher_credits():
    res = client.get("/api/v1/teachers/t2/credits", headers=TEACHER)
    assert res.status_code == 403


def test_check_credits(credit_service):
    res = client.get("/api/v1/teachers/t1/credits/check", params={"required": 500}, headers=TEACHER)
    assert res.status_code == 200
    assert res.json() == {"teacher_id": "t1", "required": 500, "has_credits": False}
    credit_service.has_credits.assert_called_once_with("t1", 500)


def test_only_admin_adds_credits(credit_service):
    res = client.post("/api/v1/teachers/t1/credits/add", json={"amount": 50}, headers=TEACHER)
    assert res.status_code == 403

    res = client.post("/api/v1/teachers/t1/credits/add", json={"amount": 50}, headers=ADMIN)
    assert res.status_code == 200
    assert res.json()["credits"] == 150


def test_credit_cost_lookup():
    res = client.get("/api/v1/teachers/credits/cost", params={"action": "APPROVE_HOMEWORK", "coin_reward": 25})
    assert res.status_code == 200
    assert res.json() == {"action": "APPROVE_HOMEWORK", "credits": 3}
