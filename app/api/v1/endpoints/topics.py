import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.topic import ProtectTopicRequest
from app.services.topics import TopicService
from app.utils.validation import ValidationError, sanitize_string, validate_secret

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/{topic}/protect")
def protect_topic(
    data: ProtectTopicRequest,
    topic: str = Depends(deps.valid_topic),
    db: Session = Depends(deps.get_db),
    _: str = Depends(deps.require_topic_access),
):
    """
    Protege o tópico com um segredo. Se já for protegido, trocar o segredo
    exige o segredo atual.
    """
    secret = sanitize_string(data.secret)
    try:
        validate_secret(secret)
    except ValidationError as e:
        raise HTTPException(400, str(e))

    TopicService().protect(db, topic, secret)
    logger.info(f"🔒 Tópico '{topic}' protegido")
    return {"status": "topic protected"}
