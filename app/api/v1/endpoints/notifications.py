import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError as PayloadError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api import deps
from app.schemas.message import NotificationPayload, PublishResponse
from app.schemas.subscription import PushSubscriptionCreate
from app.services.dispatcher import PushDispatcher
from app.services.history import HistoryService
from app.services.subscriptions import SubscriptionStore
from app.services.vapid import KeyManager, b64url_encode
from app.utils.validation import ValidationError, sanitize_string, validate_endpoint_url, validate_message

logger = logging.getLogger(__name__)

router = APIRouter()

# Limite do corpo do publish (10 MB)
MAX_BODY_SIZE = 10 * 1024 * 1024

@router.get("/vapid-public-key")
def get_vapid_public_key(key_manager: KeyManager = Depends(deps.get_key_manager)):
    return {"publicKey": b64url_encode(key_manager.public_key())}

@router.post("/subscribe/{topic}", status_code=status.HTTP_201_CREATED)
def subscribe(
    sub_in: PushSubscriptionCreate,
    topic: str = Depends(deps.require_topic_access),
    store: SubscriptionStore = Depends(deps.get_store),
):
    if not sub_in.endpoint or not sub_in.keys.p256dh or not sub_in.keys.auth:
        raise HTTPException(400, "endpoint, p256dh, and auth are required")

    try:
        validate_endpoint_url(sub_in.endpoint)
    except ValidationError as e:
        raise HTTPException(400, str(e))

    store.upsert(topic, sub_in.endpoint, sub_in.keys.p256dh, sub_in.keys.auth)
    logger.info(f"Inscrito no tópico '{topic}': {sub_in.endpoint}")
    return {"status": "subscribed"}

@router.delete("/subscribe/{topic}")
def unsubscribe(
    endpoint: str,
    topic: str = Depends(deps.require_topic_access),
    store: SubscriptionStore = Depends(deps.get_store),
):
    store.delete(topic, endpoint)
    return {"status": "unsubscribed"}

def parse_payload(body: bytes, content_type: str) -> NotificationPayload:
    """JSON {title, message, click_url} ou texto puro (vira a mensagem)"""
    if "application/json" in content_type:
        try:
            payload = NotificationPayload.model_validate(json.loads(body or b"{}"))
        except (ValueError, PayloadError):
            raise HTTPException(400, "invalid JSON payload")
    else:
        payload = NotificationPayload(title="Notification", message=body.decode("utf-8", errors="replace"))

    if not payload.title and payload.message:
        payload.title = "Notification"

    payload.title = sanitize_string(payload.title)
    payload.message = sanitize_string(payload.message)
    try:
        validate_message(payload.title, payload.message)
    except ValidationError as e:
        raise HTTPException(400, str(e))
    return payload

@router.post("/publish/{topic}", response_model=PublishResponse)
async def publish(
    request: Request,
    topic: str = Depends(deps.require_topic_access),
    db: Session = Depends(deps.get_db),
    dispatcher: PushDispatcher = Depends(deps.get_dispatcher),
):
    body = await request.body()
    if len(body) > MAX_BODY_SIZE:
        raise HTTPException(413, "request body too large (max 10 MB)")

    payload = parse_payload(body, request.headers.get("Content-Type", ""))

    # O histórico é secundário: se falhar, publica mesmo assim
    try:
        HistoryService().save(db, topic, payload)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Falha ao salvar mensagem no histórico: {e}")

    # Entrega bloqueante (threads + rede): fora do event loop
    result = await run_in_threadpool(dispatcher.publish, topic, payload)
    return PublishResponse(sent=result.sent, failed=result.failed)
