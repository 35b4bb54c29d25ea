from pydantic import BaseModel
from typing import Any, Dict, Optional


class NotificationEntry(BaseModel):
    id: int
    recipient_id: str
    title: str
    message: str
    type: str
    metadata: Optional[Dict[str, Any]] = None
    read: bool = False
    created_at: Optional[str] = None
