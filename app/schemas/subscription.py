from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class PushKeys(BaseModel):
    p256dh: str
    auth: str

class PushSubscriptionCreate(BaseModel):
    endpoint: str
    keys: PushKeys

class SubscriberRecord(BaseModel):
    """Cópia imutável de uma inscrição, segura para circular entre threads"""
    topic: str
    endpoint: str
    p256dh: str
    auth: str
    created_at: Optional[datetime] = None

    class Config:
        frozen = True

    def subscription_info(self) -> dict:
        """Formato esperado pelo pywebpush"""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
