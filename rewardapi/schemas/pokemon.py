from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class PokemonCatalogEntry(BaseModel):
    """카탈로그 포켓몬"""

    id: str = Field(..., description="포켓몬 ID")
    name: str = Field(..., description="이름")
    image_url: Optional[str] = Field(None, description="이미지 URL")
    type_1: str = Field(..., description="타입 1")
    type_2: Optional[str] = Field(None, description="타입 2")
    rarity: str = Field(..., description="common | uncommon | rare | legendary")
    price: int = Field(..., ge=0, description="상점 가격 (코인)")
    description: Optional[str] = Field(None, description="설명")
    power_stats: Optional[Dict[str, Any]] = Field(None, description="능력치")

    class Config:
        from_attributes = True


class PokemonPoolStats(BaseModel):
    total: int
    by_rarity: Dict[str, int]


class StudentCollectionEntry(BaseModel):
    """학생 보유 포켓몬 1건 (카탈로그 정보 포함)"""

    id: str = Field(..., description="보유 기록 ID (collection id)")
    student_id: str
    pokemon_id: str
    source: str
    awarded_by: Optional[str] = None
    awarded_at: Optional[str] = None
    pokemon: Optional[PokemonCatalogEntry] = None

    class Config:
        from_attributes = True


class AwardPokemonRequest(BaseModel):
    pokemon_id: str = Field(..., min_length=1)


class AwardPokemonResponse(BaseModel):
    success: bool
    collection_id: Optional[str] = None
    entry: Optional[StudentCollectionEntry] = None
    message: str = ""
    error_code: Optional[str] = None


class RemovePokemonResponse(BaseModel):
    success: bool
    collection_id: str
    message: str = ""
    error_code: Optional[str] = None


class PurchaseRequest(BaseModel):
    pokemon_id: str = Field(..., min_length=1, description="구매할 포켓몬 ID")


class PurchaseResponse(BaseModel):
    """상점 구매 결과"""

    success: bool = Field(..., description="구매 성공 여부")
    collection_id: Optional[str] = Field(None, description="새 보유 기록 ID")
    entry: Optional[StudentCollectionEntry] = Field(None, description="지급된 포켓몬")
    price: int = Field(0, description="가격")
    new_balance: Optional[int] = Field(None, description="구매 후 잔액")
    refunded: bool = Field(False, description="환불 여부")
    message: str = Field("", description="응답 메시지")
    error_code: Optional[str] = Field(None, description="실패 코드")
