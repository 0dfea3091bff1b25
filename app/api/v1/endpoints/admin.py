from datetime import timedelta
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api import deps
from app.core import security
from app.core.config import settings
from app.core.rate_limit import LoginRateLimiter
from app.schemas.topic import AdminLogin, AdminToken, TopicInfo
from app.services.topics import TopicService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=AdminToken)
def admin_login(
    data: AdminLogin,
    request: Request,
    password_hash: str = Depends(deps.ensure_admin_enabled),
    limiter: LoginRateLimiter = Depends(deps.get_rate_limiter),
):
    client_ip = deps.get_client_ip(request)

    if not limiter.is_allowed(client_ip):
        logger.warning(f"Limite de tentativas de login excedido para {client_ip}")
        raise HTTPException(429, "too many failed login attempts, please try again later")

    if not security.verify_password(data.password, password_hash):
        limiter.record_failure(client_ip)
        logger.warning(f"Senha admin incorreta vinda de {client_ip}")
        raise HTTPException(401, "invalid password")

    token = security.create_admin_token(timedelta(minutes=settings.ADMIN_TOKEN_EXPIRY_MINUTES))
    limiter.reset(client_ip)
    logger.info(f"Login admin a partir de {client_ip}")

    return AdminToken(token=token, expires_in=settings.ADMIN_TOKEN_EXPIRY_MINUTES * 60)

@router.get("/topics", response_model=List[TopicInfo])
def list_topics(
    db: Session = Depends(deps.get_db),
    _: bool = Depends(deps.get_current_active_admin)
):
    return TopicService().list_topics(db)

@router.delete("/topics/{topic}")
def delete_topic(
    topic: str,
    db: Session = Depends(deps.get_db),
    _: bool = Depends(deps.get_current_active_admin)
):
    TopicService().delete_topic(db, topic)
    logger.info(f"Admin: tópico '{topic}' removido")
    return {"status": "topic deleted"}

@router.delete("/topics/{topic}/protection")
def unprotect_topic(
    topic: str,
    db: Session = Depends(deps.get_db),
    _: bool = Depends(deps.get_current_active_admin)
):
    TopicService().unprotect(db, topic)
    logger.info(f"Admin: proteção do tópico '{topic}' removida")
    return {"status": "topic unprotected"}
