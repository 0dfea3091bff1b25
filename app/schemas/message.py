import json
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class NotificationPayload(BaseModel):
    """Conteúdo entregue ao service worker (sw.js lê title/message/click_url)"""
    title: str = ""
    message: str = ""
    click_url: Optional[str] = None

    def to_bytes(self) -> bytes:
        return json.dumps(self.model_dump(exclude_none=True)).encode("utf-8")

class MessageResponse(BaseModel):
    id: int
    topic: str
    title: str
    message: str
    click_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PublishResponse(BaseModel):
    status: str = "published"
    sent: int
    failed: int
