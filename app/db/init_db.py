import logging

from app.db.session import engine
from app.db.base import Base

# IMPORTANTE: Importar todos os modelos aqui para que o SQLAlchemy
# saiba que eles existem antes de criar as tabelas
from app.models.subscription import PushSubscription
from app.models.message import Message
from app.models.topic import TopicProtection

logger = logging.getLogger(__name__)


def init_db():
    # Cria todas as tabelas definidas nos modelos importados acima
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas prontas (subscriptions, messages, topics)")
