"""
포켓몬 카탈로그 / 학생 보유 기록 리포지토리

보유 기록의 기준 테이블은 student_pokemon_collection 하나입니다.
구버전 pokemon_collections 는 LegacyRepository 를 통한 이관에서만 읽습니다.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.models.pokemon import PokemonPool, StudentPokemonCollection
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.base import BaseRepository
from rewardapi.schemas.pokemon import PokemonCatalogEntry, StudentCollectionEntry

logger = logging.getLogger(__name__)


class PokemonCatalogRepository(BaseRepository[PokemonPool, PokemonCatalogEntry]):
    def __init__(self, db: Session, mirror: Optional[LocalMirror] = None):
        super().__init__(PokemonPool, PokemonCatalogEntry, db, mirror)

    def list_catalog(self) -> List[PokemonCatalogEntry]:
        return self.find_all(order_by="name")

    def count_by_rarity(self) -> Dict[str, int]:
        """희귀도별 포켓몬 수"""
        self._ensure_clean_session()
        try:
            rows = (
                self.db.query(PokemonPool.rarity, func.count(PokemonPool.id))
                .group_by(PokemonPool.rarity)
                .all()
            )
        except SQLAlchemyError as e:
            self._storage_error("read", e)
            counts: Dict[str, int] = {}
            for entry in self._recall_all():
                counts[entry.rarity] = counts.get(entry.rarity, 0) + 1
            return counts
        return {rarity: count for rarity, count in rows}


class CollectionRepository(BaseRepository[StudentPokemonCollection, StudentCollectionEntry]):
    def __init__(self, db: Session, mirror: Optional[LocalMirror] = None):
        super().__init__(StudentPokemonCollection, StudentCollectionEntry, db, mirror)

    def add_entry(
        self,
        student_id: str,
        pokemon_id: str,
        source: str,
        awarded_by: Optional[str] = None,
    ) -> StudentCollectionEntry:
        return self.create(
            student_id=student_id,
            pokemon_id=pokemon_id,
            source=source,
            awarded_by=awarded_by,
        )

    def remove_entry(self, collection_id: str) -> bool:
        """보유 기록 1건 삭제 (같은 종의 다른 기록은 유지)"""
        return self.delete(collection_id)

    def list_with_catalog(
        self, student_id: str
    ) -> List[Tuple[StudentCollectionEntry, Optional[PokemonCatalogEntry]]]:
        """
        학생 보유 기록과 카탈로그 정보를 외부 조인으로 조회

        Returns:
            (보유 기록, 카탈로그 항목 또는 None) 목록 - 카탈로그 행이 삭제된 경우 None
        """
        self._ensure_clean_session()
        try:
            rows = (
                self.db.query(StudentPokemonCollection, PokemonPool)
                .outerjoin(PokemonPool, PokemonPool.id == StudentPokemonCollection.pokemon_id)
                .filter(StudentPokemonCollection.student_id == student_id)
                .order_by(StudentPokemonCollection.awarded_at, StudentPokemonCollection.id)
                .all()
            )
        except SQLAlchemyError as e:
            self._storage_error("read", e)
            logger.warning(f"Falling back to mirror for collection of student {student_id}")
            return self._recall_with_catalog(student_id)

        results = []
        for entry_model, pokemon_model in rows:
            entry = self._to_schema(entry_model)
            self._remember(entry)
            pokemon = (
                PokemonCatalogEntry.model_validate(pokemon_model.to_row())
                if pokemon_model is not None
                else None
            )
            results.append((entry, pokemon))
        return results

    def _recall_with_catalog(
        self, student_id: str
    ) -> List[Tuple[StudentCollectionEntry, Optional[PokemonCatalogEntry]]]:
        if self.mirror is None:
            return []
        results = []
        for entry in self._recall_all({"student_id": student_id}):
            row = self.mirror.get(PokemonPool.__tablename__, entry.pokemon_id)
            pokemon = PokemonCatalogEntry.model_validate(row) if row else None
            results.append((entry, pokemon))
        return results
