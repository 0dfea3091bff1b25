from typing import Generator
from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.core import security
from app.core.rate_limit import LoginRateLimiter
from app.services.dispatcher import PushDispatcher
from app.services.subscriptions import SubscriptionStore
from app.services.topics import TopicService
from app.services.vapid import KeyManager
from app.utils.validation import ValidationError, validate_topic

def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()

def get_key_manager(request: Request) -> KeyManager:
    return request.app.state.key_manager

def get_dispatcher(request: Request) -> PushDispatcher:
    return request.app.state.dispatcher

def get_store(request: Request) -> SubscriptionStore:
    return request.app.state.dispatcher.store

def get_rate_limiter(request: Request) -> LoginRateLimiter:
    return request.app.state.login_rate_limiter

def valid_topic(topic: str) -> str:
    try:
        validate_topic(topic)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return topic

def require_topic_access(
    request: Request,
    topic: str = Depends(valid_topic),
    db: Session = Depends(get_db),
) -> str:
    """
    Tópicos protegidos exigem o segredo no header X-Pushem-Key (ou ?key=).
    Tópicos públicos passam direto.
    """
    provided_key = request.headers.get("X-Pushem-Key") or request.query_params.get("key", "")
    if not TopicService().verify_secret(db, topic, provided_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unauthorized: topic is protected",
        )
    return topic

def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"

def ensure_admin_enabled(request: Request) -> str:
    password_hash = getattr(request.app.state, "admin_password_hash", None)
    if not password_hash:
        raise HTTPException(status_code=403, detail="admin panel is disabled")
    return password_hash

def get_current_active_admin(request: Request, _: str = Depends(ensure_admin_enabled)) -> bool:
    """
    Lê o header 'Authorization: Bearer <token>' e valida o JWT de admin.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="unauthorized: missing token")

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise HTTPException(status_code=401, detail="unauthorized: invalid authorization header")

    if not security.validate_admin_token(parts[1]):
        raise HTTPException(status_code=401, detail="unauthorized: invalid or expired token")
    return True
