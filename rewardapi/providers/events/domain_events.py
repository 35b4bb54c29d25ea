from pydantic import BaseModel, Field
from typing import Optional


class CoinsChangedEvent(BaseModel):
    student_id: str
    amount: int  # 부호 있는 변동량
    new_balance: int
    reason: str
    actor_id: Optional[str] = None
    actor_type: Optional[str] = None
    actor_name: Optional[str] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None


class PokemonGrantedEvent(BaseModel):
    student_id: str
    pokemon_id: str
    pokemon_name: Optional[str] = None
    collection_id: str
    source: str
    actor_id: Optional[str] = None
    actor_type: Optional[str] = None
    actor_name: Optional[str] = None


class CreditsChangedEvent(BaseModel):
    teacher_id: str
    amount: int
    credits: int = Field(..., description="변동 후 잔액")
    reason: str
