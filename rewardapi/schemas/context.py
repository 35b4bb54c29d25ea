from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ActorType(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class EconomyContext(BaseModel):
    """호출 주체 정보 - 서비스 호출마다 명시적으로 전달"""

    actor_id: str = Field(..., min_length=1, description="요청자 ID")
    actor_type: ActorType = Field(..., description="요청자 유형")
    actor_name: Optional[str] = Field(None, description="알림에 표시할 이름")

    @property
    def display_name(self) -> str:
        return self.actor_name or self.actor_id

    @property
    def is_teacher(self) -> bool:
        return self.actor_type in (ActorType.TEACHER, ActorType.ADMIN)
