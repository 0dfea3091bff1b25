from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api import deps
from app.core.exceptions import MessageNotFound
from app.schemas.message import MessageResponse
from app.services.history import HistoryService

router = APIRouter()

@router.get("/{topic}", response_model=List[MessageResponse])
def get_history(
    topic: str = Depends(deps.require_topic_access),
    db: Session = Depends(deps.get_db),
):
    """Últimas 50 mensagens do tópico, mais recentes primeiro"""
    return HistoryService().list_by_topic(db, topic)

@router.delete("/{topic}")
def clear_history(
    topic: str = Depends(deps.require_topic_access),
    db: Session = Depends(deps.get_db),
):
    HistoryService().clear(db, topic)
    return {"status": "history cleared"}

@router.delete("/{topic}/{message_id}")
def delete_message(
    message_id: int,
    topic: str = Depends(deps.require_topic_access),
    db: Session = Depends(deps.get_db),
):
    try:
        HistoryService().delete_message(db, topic, message_id)
    except MessageNotFound as e:
        raise HTTPException(404, str(e))
    return {"status": "message deleted"}
