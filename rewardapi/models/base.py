from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# 제약 조건 이름을 고정해 PostgreSQL / SQLite 양쪽에서 같은 DDL 생성
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    """생성/수정 시각 (DB 서버 시각 기준)"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class BaseModel(Base, TimestampMixin):
    """모든 원장/카탈로그 테이블의 베이스 클래스"""

    __abstract__ = True

    def to_row(self) -> Dict[str, Any]:
        """매핑된 속성 값을 dict 로 변환 (datetime 은 ISO 문자열, 미러/스키마 공용)"""
        row: Dict[str, Any] = {}
        for attr in self.__mapper__.column_attrs:
            value = getattr(self, attr.key, None)
            if isinstance(value, datetime):
                value = value.isoformat()
            row[attr.key] = value
        return row
