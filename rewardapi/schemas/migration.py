from pydantic import BaseModel


class MigrationReport(BaseModel):
    """레거시 테이블 이관 결과"""

    students_migrated: int = 0
    students_skipped: int = 0
    collections_migrated: int = 0
    collections_skipped: int = 0
