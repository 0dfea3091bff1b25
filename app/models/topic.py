from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.db.base import Base

class TopicProtection(Base):
    """Tópico protegido: publicar/inscrever exige o segredo"""
    __tablename__ = "topics"

    topic = Column(String(100), primary_key=True)
    # Hash do segredo, nunca o texto puro
    secret = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
