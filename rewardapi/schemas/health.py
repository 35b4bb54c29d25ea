from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """원격 DB 와 로컬 미러 연결 상태"""

    status: str = Field("healthy", description="healthy | degraded (DB 불가)")
    database: bool = Field(True, description="DB SELECT 1 성공 여부")
    mirror: bool = Field(True, description="Redis 미러 PING 성공 여부")
