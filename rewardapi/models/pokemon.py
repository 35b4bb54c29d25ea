import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from rewardapi.models.base import BaseModel


class RarityEnum(enum.Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


class CollectionSourceEnum(enum.Enum):
    SHOP_PURCHASE = "shop_purchase"
    TEACHER_AWARD = "teacher_award"
    MYSTERY_BALL = "mystery_ball"
    EVENT_REWARD = "event_reward"
    LEGACY = "legacy"


class PokemonPool(BaseModel):
    """사이트 전체 공용 포켓몬 카탈로그 (종 단위 참조 데이터)"""

    __tablename__ = "pokemon_pool"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type_1: Mapped[str] = mapped_column(Text, nullable=False)
    type_2: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rarity: Mapped[str] = mapped_column(String(20), nullable=False, default=RarityEnum.COMMON.value)
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    power_stats: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)


class StudentPokemonCollection(BaseModel):
    """학생이 보유한 포켓몬 1마리 (같은 종을 여러 번 보유 가능)"""

    __tablename__ = "student_pokemon_collection"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("student_profiles.id"), nullable=False, index=True
    )

    # 카탈로그 행이 삭제되어도 보유 기록은 남을 수 있으므로 FK 를 걸지 않음
    pokemon_id: Mapped[str] = mapped_column(String(36), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    awarded_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    awarded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class LegacyPokemonCollection(BaseModel):
    """구버전 pokemon_collections 테이블 (읽기 전용)"""

    __tablename__ = "pokemon_collections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    pokemon_id: Mapped[str] = mapped_column(String(36), nullable=False)
    obtained_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
