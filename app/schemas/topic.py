from typing import Optional
from pydantic import BaseModel

class ProtectTopicRequest(BaseModel):
    secret: str

class TopicInfo(BaseModel):
    name: str
    is_protected: bool
    subscription_count: int
    message_count: int
    created_at: Optional[str] = None

class AdminLogin(BaseModel):
    password: str

class AdminToken(BaseModel):
    token: str
    expires_in: int
    token_type: str = "Bearer"
