from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base

class PushSubscription(Base):
    __tablename__ = "subscriptions"
    # Um endpoint só pode aparecer uma vez por tópico (re-inscrição = upsert)
    __table_args__ = (UniqueConstraint("topic", "endpoint", name="uq_subscription_topic_endpoint"),)

    id = Column(Integer, primary_key=True, index=True)
    topic = Column(String(100), nullable=False, index=True)

    # Dados técnicos que o navegador envia
    endpoint = Column(Text, nullable=False)
    auth_key = Column(String(255), nullable=False)
    p256dh_key = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
