import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core import security
from app.models.message import Message
from app.models.subscription import PushSubscription
from app.models.topic import TopicProtection
from app.schemas.topic import TopicInfo

logger = logging.getLogger(__name__)

class TopicService:

    def protect(self, db: Session, topic: str, secret: str) -> None:
        """Cria ou troca o segredo do tópico (guardado só como hash)"""
        hashed = security.get_password_hash(secret)
        existing = db.query(TopicProtection).filter(TopicProtection.topic == topic).first()
        if existing:
            existing.secret = hashed
        else:
            db.add(TopicProtection(topic=topic, secret=hashed))
        db.commit()

    def is_protected(self, db: Session, topic: str) -> bool:
        return db.query(TopicProtection).filter(TopicProtection.topic == topic).first() is not None

    def verify_secret(self, db: Session, topic: str, provided_secret: str) -> bool:
        """Tópico sem segredo é público: sempre True"""
        protection = db.query(TopicProtection).filter(TopicProtection.topic == topic).first()
        if not protection:
            return True
        if not provided_secret:
            return False
        return security.verify_password(provided_secret, protection.secret)

    def unprotect(self, db: Session, topic: str) -> None:
        db.query(TopicProtection).filter(TopicProtection.topic == topic).delete()
        db.commit()

    def list_topics(self, db: Session) -> List[TopicInfo]:
        """Todos os tópicos com inscrições, com contagens para o painel admin"""
        sub_counts = db.query(
            PushSubscription.topic,
            func.count(PushSubscription.id).label("total")
        ).group_by(PushSubscription.topic).order_by(PushSubscription.topic).all()

        msg_counts = dict(
            db.query(Message.topic, func.count(Message.id)).group_by(Message.topic).all()
        )
        protections = {p.topic: p for p in db.query(TopicProtection).all()}

        topics = []
        for topic, total in sub_counts:
            protection = protections.get(topic)
            topics.append(TopicInfo(
                name=topic,
                is_protected=protection is not None,
                subscription_count=total,
                message_count=msg_counts.get(topic, 0),
                created_at=protection.created_at.isoformat() if protection and protection.created_at else None,
            ))
        return topics

    def delete_topic(self, db: Session, topic: str) -> None:
        """Remove inscrições, histórico e proteção numa única transação"""
        try:
            db.query(PushSubscription).filter(PushSubscription.topic == topic).delete()
            db.query(Message).filter(Message.topic == topic).delete()
            db.query(TopicProtection).filter(TopicProtection.topic == topic).delete()
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"🗑️ Tópico '{topic}' removido")
