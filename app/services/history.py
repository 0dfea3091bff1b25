from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy.orm import Session

from app.core.exceptions import MessageNotFound
from app.models.message import Message
from app.schemas.message import NotificationPayload

HISTORY_LIMIT = 50

class HistoryService:

    def save(self, db: Session, topic: str, payload: NotificationPayload) -> Message:
        msg = Message(topic=topic, title=payload.title, message=payload.message, click_url=payload.click_url)
        db.add(msg)
        db.commit()
        db.refresh(msg)
        return msg

    def list_by_topic(self, db: Session, topic: str, limit: int = HISTORY_LIMIT) -> List[Message]:
        return db.query(Message).filter(
            Message.topic == topic
        ).order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()

    def clear(self, db: Session, topic: str) -> int:
        count = db.query(Message).filter(Message.topic == topic).delete()
        db.commit()
        return count

    def delete_message(self, db: Session, topic: str, message_id: int) -> None:
        msg = db.query(Message).filter(Message.id == message_id).first()
        if not msg:
            raise MessageNotFound("message not found")
        if msg.topic != topic:
            raise MessageNotFound("message does not belong to topic")
        db.delete(msg)
        db.commit()

    def delete_older_than(self, db: Session, days: int) -> int:
        # Compara sem fuso: o SQLite devolve datas naive
        cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days)
        count = db.query(Message).filter(Message.created_at < cutoff).delete()
        db.commit()
        return count

    def count(self, db: Session) -> int:
        return db.query(Message).count()
