import logging

from sqlalchemy.orm import Session

from rewardapi.repositories.legacy_repository import LegacyRepository
from rewardapi.schemas.migration import MigrationReport

logger = logging.getLogger(__name__)


class LegacyMigrationService:
    """구버전 테이블을 정규 테이블로 1회 이관 (재실행해도 안전)

    - students -> student_profiles (없는 학생만)
    - pokemon_collections -> student_pokemon_collection (source="legacy", 원본 id 유지)
    """

    def __init__(self, db: Session):
        self.db = db
        self.legacy_repo = LegacyRepository(db)

    def migrate(self) -> MigrationReport:
        report = MigrationReport()

        for legacy in self.legacy_repo.students_missing_profiles():
            self.legacy_repo.add_profile(legacy)
            report.students_migrated += 1
        self.legacy_repo.commit()

        known_students = self.legacy_repo.existing_student_ids()
        report.students_skipped = len(known_students) - report.students_migrated

        migrated_ids = self.legacy_repo.existing_collection_ids()
        for legacy in self.legacy_repo.legacy_collections():
            if legacy.id in migrated_ids:
                report.collections_skipped += 1
                continue
            if legacy.student_id not in known_students:
                logger.warning(
                    f"Skipping legacy collection {legacy.id}: unknown student {legacy.student_id}"
                )
                report.collections_skipped += 1
                continue
            self.legacy_repo.add_collection(legacy)
            report.collections_migrated += 1
        self.legacy_repo.commit()

        logger.info(
            f"Legacy migration finished: students={report.students_migrated} "
            f"collections={report.collections_migrated} "
            f"skipped_collections={report.collections_skipped}"
        )
        return report
