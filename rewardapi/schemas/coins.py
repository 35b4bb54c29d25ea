from pydantic import BaseModel, Field
from typing import List, Optional


class StudentBalance(BaseModel):
    """학생 코인 잔액"""

    student_id: str = Field(..., description="학생 ID")
    coins: int = Field(..., ge=0, description="현재 코인 잔액")
    spent_coins: int = Field(0, ge=0, description="누적 사용 코인")

    class Config:
        from_attributes = True


class CoinTransactionRequest(BaseModel):
    """코인 지급/차감 요청"""

    amount: int = Field(..., gt=0, description="코인 수량")
    reason: str = Field("reward", min_length=1, max_length=255, description="사유")
    related_entity_type: Optional[str] = Field(None, description="관련 엔티티 유형")
    related_entity_id: Optional[str] = Field(None, description="관련 엔티티 ID")

    class Config:
        from_attributes = True


class CoinTransactionResponse(BaseModel):
    """코인 거래 결과"""

    success: bool = Field(..., description="성공 여부")
    student_id: str = Field(..., description="학생 ID")
    delta_coins: int = Field(0, description="실제 변동량")
    new_balance: Optional[int] = Field(None, description="거래 후 잔액")
    transaction_id: Optional[int] = Field(None, description="coin_history ID")
    message: str = Field("", description="응답 메시지")
    error_code: Optional[str] = Field(None, description="실패 코드")

    class Config:
        from_attributes = True


class CoinHistoryEntry(BaseModel):
    """코인 변동 기록"""

    id: int
    user_id: str
    change_amount: int
    reason: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        from_attributes = True


class CoinHistoryResponse(BaseModel):
    balance: int = Field(..., description="현재 잔액")
    entries: List[CoinHistoryEntry] = Field(..., description="변동 기록 (최신순)")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")
