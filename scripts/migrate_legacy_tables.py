"""
구버전 students / pokemon_collections 데이터를 정규 테이블로 이관합니다.

사용법:
    python scripts/migrate_legacy_tables.py

여러 번 실행해도 이미 이관된 행은 건너뜁니다.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rewardapi.config import settings
from rewardapi.database.session import get_db_context
from rewardapi.logging_config import setup_logging
from rewardapi.services.migration_service import LegacyMigrationService


def main():
    setup_logging(settings.LOG_LEVEL)
    with get_db_context() as db:
        report = LegacyMigrationService(db).migrate()

    print(f"Students migrated:    {report.students_migrated}")
    print(f"Students skipped:     {report.students_skipped}")
    print(f"Collections migrated: {report.collections_migrated}")
    print(f"Collections skipped:  {report.collections_skipped}")


if __name__ == "__main__":
    main()
