import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreUnavailable
from app.db.session import SessionLocal
from app.models.subscription import PushSubscription
from app.schemas.subscription import SubscriberRecord

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """
    Acesso às inscrições. Cada chamada abre a própria sessão, então os workers
    do dispatcher podem apagar inscrições em paralelo sem coordenação.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable(f"banco de inscrições indisponível: {e}") from e
        finally:
            db.close()

    def list_by_topic(self, topic: str) -> List[SubscriberRecord]:
        with self._session() as db:
            rows = db.query(PushSubscription).filter(PushSubscription.topic == topic).all()
            return [
                SubscriberRecord(
                    topic=row.topic,
                    endpoint=row.endpoint,
                    p256dh=row.p256dh_key,
                    auth=row.auth_key,
                    created_at=row.created_at,
                )
                for row in rows
            ]

    def upsert(self, topic: str, endpoint: str, p256dh: str, auth: str) -> bool:
        """Grava a inscrição. Retorna True se criou, False se só atualizou as chaves."""
        with self._session() as db:
            if self._update_keys(db, topic, endpoint, p256dh, auth):
                return False
            db.add(PushSubscription(topic=topic, endpoint=endpoint, p256dh_key=p256dh, auth_key=auth))
            try:
                db.commit()
                return True
            except IntegrityError:
                # Outra requisição inscreveu o mesmo (topic, endpoint) no meio do caminho
                db.rollback()
                self._update_keys(db, topic, endpoint, p256dh, auth)
                return False

    def _update_keys(self, db: Session, topic: str, endpoint: str, p256dh: str, auth: str) -> bool:
        existing = db.query(PushSubscription).filter(
            PushSubscription.topic == topic,
            PushSubscription.endpoint == endpoint,
        ).first()
        if not existing:
            return False
        existing.p256dh_key = p256dh
        existing.auth_key = auth
        db.commit()
        return True

    def delete(self, topic: str, endpoint: str) -> int:
        with self._session() as db:
            count = db.query(PushSubscription).filter(
                PushSubscription.topic == topic,
                PushSubscription.endpoint == endpoint,
            ).delete(synchronize_session=False)
            db.commit()
            return count

    def delete_by_endpoint(self, endpoint: str) -> int:
        """Remove o endpoint de todos os tópicos. Apagar o que já não existe não é erro."""
        with self._session() as db:
            count = db.query(PushSubscription).filter(
                PushSubscription.endpoint == endpoint
            ).delete(synchronize_session=False)
            db.commit()
            return count

    def delete_by_topic(self, topic: str) -> int:
        with self._session() as db:
            count = db.query(PushSubscription).filter(
                PushSubscription.topic == topic
            ).delete(synchronize_session=False)
            db.commit()
            return count

    def count_by_topic(self, topic: str) -> int:
        with self._session() as db:
            return db.query(PushSubscription).filter(PushSubscription.topic == topic).count()
