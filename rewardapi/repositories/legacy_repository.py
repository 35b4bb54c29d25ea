"""
구버전 테이블 어댑터 (students, pokemon_collections)

정규 테이블로의 1회 이관에만 사용합니다.
"""

from typing import List, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.core.exceptions import StorageError
from rewardapi.models.pokemon import LegacyPokemonCollection, StudentPokemonCollection
from rewardapi.models.student import LegacyStudent, StudentProfile


class LegacyRepository:
    def __init__(self, db: Session):
        self.db = db

    def students_missing_profiles(self) -> List[LegacyStudent]:
        """student_profiles 에 없는 students 행"""
        try:
            existing = self.db.query(StudentProfile.id)
            return (
                self.db.query(LegacyStudent)
                .filter(LegacyStudent.id.not_in(existing))
                .order_by(LegacyStudent.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(details={"operation": "read", "table": "students"}) from e

    def legacy_collections(self) -> List[LegacyPokemonCollection]:
        try:
            return self.db.query(LegacyPokemonCollection).order_by(LegacyPokemonCollection.id).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(details={"operation": "read", "table": "pokemon_collections"}) from e

    def existing_collection_ids(self) -> Set[str]:
        """이관 시 원본 id 를 그대로 쓰므로 id 존재 여부로 중복 이관을 판별"""
        return {row[0] for row in self.db.query(StudentPokemonCollection.id).all()}

    def existing_student_ids(self) -> Set[str]:
        return {row[0] for row in self.db.query(StudentProfile.id).all()}

    def add_profile(self, legacy: LegacyStudent) -> None:
        self.db.add(
            StudentProfile(
                id=legacy.id,
                username=legacy.username,
                display_name=legacy.display_name,
                coins=max(0, legacy.coins or 0),
            )
        )

    def add_collection(self, legacy: LegacyPokemonCollection) -> None:
        entry = StudentPokemonCollection(
            id=legacy.id,
            student_id=legacy.student_id,
            pokemon_id=legacy.pokemon_id,
            source="legacy",
        )
        if legacy.obtained_at is not None:
            entry.awarded_at = legacy.obtained_at
        self.db.add(entry)

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(details={"operation": "migrate"}) from e
