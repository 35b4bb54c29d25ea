from unittest.mock import Mock

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from rewardapi.core.exceptions import ReconciliationError
from rewardapi.main import app
from rewardapi.schemas.pokemon import (
    PokemonCatalogEntry,
    PurchaseResponse,
    RemovePokemonResponse,
)

TEACHER = {"X-Actor-Id": "t1", "X-Actor-Type": "teacher"}
STUDENT = {"X-Actor-Id": "s1", "X-Actor-Type": "student"}

PIKACHU = PokemonCatalogEntry(id="p1", name="Pikachu", type_1="electric", rarity="common", price=15)


@pytest.fixture
def pokemon_service():
    service = Mock()
    service.get_catalog.return_value = [PIKACHU]
    service.get_catalog_entry.return_value = None
    service.get_collection.return_value = []
    return service


@pytest.fixture
def purchase_service():
    service = Mock()
    service.purchase_pokemon.return_value = PurchaseResponse(
        success=False,
        price=15,
        new_balance=10,
        message="You need 15 coins but only have 10",
        error_code="BALANCE_001",
    )
    return service


@pytest.fixture
def teacher_action_service():
    service = Mock()
    service.remove_pokemon.return_value = RemovePokemonResponse(
        success=True, collection_id="c1", message="Pokemon removed"
    )
    return service


@pytest.fixture(autouse=True)
def patch_services(pokemon_service, purchase_service, teacher_action_service):
    container = app.container  # type: ignore
    container.services.pokemon_service.override(providers.Object(pokemon_service))
    container.services.purchase_service.override(providers.Object(purchase_service))
    container.services.teacher_action_service.override(providers.Object(teacher_action_service))
    yield
    container.services.pokemon_service.reset_override()
    container.services.purchase_service.reset_override()
    container.services.teacher_action_service.reset_override()


client = TestClient(app)


def test_catalog_is_public():
    res = client.get("/api/v1/pokemon/catalog")
    assert res.status_code == 200
    assert [p["name"] for p in res.json()] == ["Pikachu"]


def test_unknown_catalog_entry_returns_404():
    res = client.get("/api/v1/pokemon/catalog/nope")
    assert res.status_code == 404


def test_purchase_insufficient_balance_is_business_failure(purchase_service):
    res = client.post("/api/v1/pokemon/students/s1/purchase", json={"pokemon_id": "p1"}, headers=STUDENT)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is False
    assert body["error_code"] == "BALANCE_001"
    assert purchase_service.purchase_pokemon.call_args.args == ("s1", "p1")


def test_purchase_for_another_student_forbidden(purchase_service):
    res = client.post("/api/v1/pokemon/students/s2/purchase", json={"pokemon_id": "p1"}, headers=STUDENT)
    assert res.status_code == 403
    purchase_service.purchase_pokemon.assert_not_called()


def test_reconciliation_failure_surfaces_as_500(purchase_service):
    purchase_service.purchase_pokemon.side_effect = ReconciliationError(
        details={"operation": "refund", "student_id": "s1", "pokemon_id": "p1", "amount": 15}
    )
    res = client.post("/api/v1/pokemon/students/s1/purchase", json={"pokemon_id": "p1"}, headers=STUDENT)
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "RECONCILIATION_001"


def test_teacher_removes_collection_entry(teacher_action_service):
    res = client.delete("/api/v1/pokemon/collection/c1", headers=TEACHER)
    assert res.status_code == 200
    assert res.json()["success"] is True


def test_student_cannot_remove_collection_entry(teacher_action_service):
    res = client.delete("/api/v1/pokemon/collection/c1", headers=STUDENT)
    assert res.status_code == 403
    teacher_action_service.remove_pokemon.assert_not_called()
