import logging
import random
from typing import List, Optional

from sqlalchemy.orm import Session

from rewardapi.models.pokemon import CollectionSourceEnum
from rewardapi.providers.events.dispatcher import EventDispatcher
from rewardapi.providers.events.domain_events import PokemonGrantedEvent
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.pokemon_repository import (
    CollectionRepository,
    PokemonCatalogRepository,
)
from rewardapi.repositories.student_repository import StudentRepository
from rewardapi.schemas.context import EconomyContext
from rewardapi.schemas.pokemon import (
    AwardPokemonResponse,
    PokemonCatalogEntry,
    PokemonPoolStats,
    StudentCollectionEntry,
)

logger = logging.getLogger(__name__)

VALID_SOURCES = {source.value for source in CollectionSourceEnum}


class PokemonService:
    """포켓몬 카탈로그와 학생 보유 기록 관리"""

    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.catalog_repo = PokemonCatalogRepository(db, mirror)
        self.collection_repo = CollectionRepository(db, mirror)
        self.student_repo = StudentRepository(db, mirror)

    def get_catalog(self) -> List[PokemonCatalogEntry]:
        return self.catalog_repo.list_catalog()

    def get_catalog_entry(self, pokemon_id: str) -> Optional[PokemonCatalogEntry]:
        return self.catalog_repo.get_by_id(pokemon_id)

    def get_pool_stats(self) -> PokemonPoolStats:
        by_rarity = self.catalog_repo.count_by_rarity()
        return PokemonPoolStats(total=sum(by_rarity.values()), by_rarity=by_rarity)

    def draw_random_pokemon(self, rng: Optional[random.Random] = None) -> Optional[PokemonCatalogEntry]:
        """카탈로그 전체에서 균등 추첨 - 카탈로그가 비어 있으면 None"""
        catalog = self.get_catalog()
        if not catalog:
            return None
        return (rng or random).choice(catalog)

    def award_pokemon(
        self,
        student_id: str,
        pokemon_id: str,
        source: str,
        context: Optional[EconomyContext] = None,
    ) -> AwardPokemonResponse:
        """포켓몬 지급 (가격 확인 없음)

        Args:
            student_id: 학생 ID
            pokemon_id: 카탈로그 포켓몬 ID
            source: shop_purchase | teacher_award | mystery_ball | event_reward | legacy

        Returns:
            AwardPokemonResponse: 새 보유 기록 ID 포함
        """
        if not student_id or not pokemon_id:
            return AwardPokemonResponse(
                success=False,
                message="Student id and pokemon id are required",
                error_code="VALIDATION_001",
            )
        if source not in VALID_SOURCES:
            return AwardPokemonResponse(
                success=False,
                message=f"Invalid source: {source}",
                error_code="VALIDATION_001",
            )

        if self.student_repo.get_balance(student_id) is None:
            return AwardPokemonResponse(
                success=False,
                message=f"Student {student_id} not found",
                error_code="NOT_FOUND_001",
            )

        pokemon = self.catalog_repo.get_by_id(pokemon_id)
        if pokemon is None:
            return AwardPokemonResponse(
                success=False,
                message=f"Pokemon {pokemon_id} not found",
                error_code="NOT_FOUND_001",
            )

        entry = self.collection_repo.add_entry(
            student_id=student_id,
            pokemon_id=pokemon_id,
            source=source,
            awarded_by=context.actor_id if context else None,
        )
        entry = entry.model_copy(update={"pokemon": pokemon})
        logger.info(f"Granted {pokemon.name} to student {student_id} (source={source})")

        if self.dispatcher is not None:
            self.dispatcher.publish(
                PokemonGrantedEvent(
                    student_id=student_id,
                    pokemon_id=pokemon_id,
                    pokemon_name=pokemon.name,
                    collection_id=entry.id,
                    source=source,
                    actor_id=context.actor_id if context else None,
                    actor_type=context.actor_type.value if context else None,
                    actor_name=context.display_name if context else None,
                )
            )

        return AwardPokemonResponse(
            success=True,
            collection_id=entry.id,
            entry=entry,
            message=f"{pokemon.name} added to collection",
        )

    def remove_pokemon(self, collection_id: str) -> bool:
        """보유 기록 1건 삭제 - 기록이 없으면 False"""
        if not collection_id:
            return False
        removed = self.collection_repo.remove_entry(collection_id)
        if removed:
            logger.info(f"Removed collection entry {collection_id}")
        return removed

    def get_collection(self, student_id: str) -> List[StudentCollectionEntry]:
        """학생 보유 포켓몬 목록 (카탈로그 정보 포함)

        카탈로그에서 삭제된 포켓몬을 가리키는 기록은 경고 후 제외합니다.
        """
        results = []
        for entry, pokemon in self.collection_repo.list_with_catalog(student_id):
            if pokemon is None:
                logger.warning(
                    f"Collection entry {entry.id} references missing pokemon {entry.pokemon_id}"
                )
                continue
            results.append(entry.model_copy(update={"pokemon": pokemon}))
        return results
