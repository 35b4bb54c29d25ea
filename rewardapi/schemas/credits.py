from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional


class CreditAction(str, Enum):
    CREATE_STUDENT = "CREATE_STUDENT"
    ASSIGN_HOMEWORK = "ASSIGN_HOMEWORK"
    APPROVE_HOMEWORK = "APPROVE_HOMEWORK"
    AWARD_COINS = "AWARD_COINS"
    AWARD_POKEMON = "AWARD_POKEMON"
    DELETE_POKEMON = "DELETE_POKEMON"


class TeacherCreditBalance(BaseModel):
    """교사 크레딧 잔액"""

    teacher_id: str = Field(..., description="교사 ID")
    credits: int = Field(..., ge=0, description="사용 가능 크레딧")
    used_credits: int = Field(0, ge=0, description="누적 사용 크레딧")
    unlimited_credits: bool = Field(False, description="무제한 여부")

    class Config:
        from_attributes = True


class CreditAdjustRequest(BaseModel):
    amount: int = Field(..., gt=0, description="크레딧 수량")
    reason: str = Field("Admin credit grant", min_length=1, max_length=255)


class UnlimitedCreditsRequest(BaseModel):
    enabled: bool


class CreditCheckResponse(BaseModel):
    teacher_id: str
    required: int
    has_credits: bool


class CreditTransactionEntry(BaseModel):
    id: int
    teacher_id: str
    amount: int
    reason: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


class CreditHistoryResponse(BaseModel):
    balance: TeacherCreditBalance
    entries: List[CreditTransactionEntry]
    total_count: int
    has_next: bool
