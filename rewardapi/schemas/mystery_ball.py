from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional

from rewardapi.schemas.pokemon import PokemonCatalogEntry


class DailyAttemptStatus(BaseModel):
    student_id: str
    attempt_date: str
    can_attempt: bool


class MysteryBallOutcome(BaseModel):
    """미스터리볼 추첨 결과 (적용 전)"""

    result_type: str = Field(..., description="pokemon | coins")
    pokemon: Optional[PokemonCatalogEntry] = None
    coins: Optional[int] = None


class MysteryBallResult(BaseModel):
    success: bool
    result_type: Optional[str] = None
    pokemon: Optional[PokemonCatalogEntry] = None
    collection_id: Optional[str] = None
    coins: Optional[int] = None
    new_balance: Optional[int] = None
    message: str = ""
    error_code: Optional[str] = None


class MysteryBallHistoryEntry(BaseModel):
    id: int
    student_id: str
    result_type: str
    pokemon_id: Optional[str] = None
    pokemon_name: Optional[str] = None
    coins_amount: Optional[int] = None
    granted: bool = True
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


class MysteryBallHistoryResponse(BaseModel):
    student_id: str
    history: List[MysteryBallHistoryEntry]


class DailyAttemptEntry(BaseModel):
    student_id: str
    attempt_date: date
    used: bool = False

    class Config:
        from_attributes = True
