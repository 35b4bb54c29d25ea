"""
포켓몬 API 라우터

카탈로그:
- GET /pokemon/catalog, /pokemon/catalog/stats, /pokemon/catalog/{pokemon_id}

보유 기록:
- GET    /pokemon/students/{student_id}/collection
- POST   /pokemon/students/{student_id}/purchase: 학생 상점 구매
- POST   /pokemon/students/{student_id}/award: 교사 지급 (크레딧 소모)
- DELETE /pokemon/collection/{collection_id}: 교사 삭제 (크레딧 소모)
"""

from typing import List

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends, Path

from rewardapi.containers import Container
from rewardapi.core.exceptions import AuthorizationError, NotFoundError
from rewardapi.deps import get_economy_context, require_self_or_teacher, require_teacher
from rewardapi.schemas.context import EconomyContext
from rewardapi.schemas.pokemon import (
    AwardPokemonRequest,
    AwardPokemonResponse,
    PokemonCatalogEntry,
    PokemonPoolStats,
    PurchaseRequest,
    PurchaseResponse,
    RemovePokemonResponse,
    StudentCollectionEntry,
)
from rewardapi.services.pokemon_service import PokemonService
from rewardapi.services.purchase_service import PurchaseService
from rewardapi.services.teacher_action_service import TeacherActionService

router = APIRouter(prefix="/pokemon", tags=["pokemon"])


@router.get("/catalog", response_model=List[PokemonCatalogEntry])
@inject
async def get_catalog(
    pokemon_service: PokemonService = Depends(Provide[Container.services.pokemon_service]),
) -> List[PokemonCatalogEntry]:
    return pokemon_service.get_catalog()


@router.get("/catalog/stats", response_model=PokemonPoolStats)
@inject
async def get_pool_stats(
    pokemon_service: PokemonService = Depends(Provide[Container.services.pokemon_service]),
) -> PokemonPoolStats:
    return pokemon_service.get_pool_stats()


@router.get("/catalog/{pokemon_id}", response_model=PokemonCatalogEntry)
@inject
async def get_catalog_entry(
    pokemon_id: str = Path(..., description="포켓몬 ID"),
    pokemon_service: PokemonService = Depends(Provide[Container.services.pokemon_service]),
) -> PokemonCatalogEntry:
    entry = pokemon_service.get_catalog_entry(pokemon_id)
    if entry is None:
        raise NotFoundError(f"Pokemon {pokemon_id} not found")
    return entry


@router.get("/students/{student_id}/collection", response_model=List[StudentCollectionEntry])
@inject
async def get_collection(
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    pokemon_service: PokemonService = Depends(Provide[Container.services.pokemon_service]),
) -> List[StudentCollectionEntry]:
    require_self_or_teacher(context, student_id)
    return pokemon_service.get_collection(student_id)


@router.post("/students/{student_id}/purchase", response_model=PurchaseResponse)
@inject
async def purchase_pokemon(
    request: PurchaseRequest,
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    purchase_service: PurchaseService = Depends(Provide[Container.services.purchase_service]),
) -> PurchaseResponse:
    """
    상점 구매

    잔액 부족: success=False, error_code=BALANCE_001 (변경 없음)
    지급 실패: success=False, error_code=PAYMENT_001, refunded=True
    환불 실패: 500 RECONCILIATION_001
    """
    if context.actor_id != student_id:
        raise AuthorizationError("Students can only purchase for themselves")
    return purchase_service.purchase_pokemon(student_id, request.pokemon_id, context=context)


@router.post("/students/{student_id}/award", response_model=AwardPokemonResponse)
@inject
async def award_pokemon(
    request: AwardPokemonRequest,
    student_id: str = Path(..., description="학생 ID"),
    context: EconomyContext = Depends(get_economy_context),
    teacher_action_service: TeacherActionService = Depends(
        Provide[Container.services.teacher_action_service]
    ),
) -> AwardPokemonResponse:
    require_teacher(context)
    return teacher_action_service.award_pokemon(context, student_id, request.pokemon_id)


@router.delete("/collection/{collection_id}", response_model=RemovePokemonResponse)
@inject
async def remove_pokemon(
    collection_id: str = Path(..., description="보유 기록 ID"),
    context: EconomyContext = Depends(get_economy_context),
    teacher_action_service: TeacherActionService = Depends(
        Provide[Container.services.teacher_action_service]
    ),
) -> RemovePokemonResponse:
    require_teacher(context)
    return teacher_action_service.remove_pokemon(context, collection_id)
