"""
Publicação em um tópico: uma tentativa de entrega por inscrito, em paralelo limitado.

Cada tentativa é única (sem retry): assina o token do provedor, entrega, classifica.
Inscrições que o provedor declarou mortas (410) são apagadas; falhas transitórias só
entram na contagem. Nenhuma falha individual derruba a publicação inteira.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from typing import Union

from app.core.exceptions import SigningFailure, StoreUnavailable
from app.schemas.message import NotificationPayload
from app.schemas.subscription import SubscriberRecord
from app.services.classifier import DeliveryOutcome, classify
from app.services.push import PushTransport
from app.services.signer import TokenSigner
from app.services.subscriptions import SubscriptionStore
from app.services.vapid import VapidKeyPair

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


@dataclass(frozen=True)
class PublishResult:
    sent: int = 0
    failed: int = 0
    # Inscrições apagadas por GONE (já incluídas em failed)
    removed: int = 0

    @property
    def total(self) -> int:
        return self.sent + self.failed


class DeliveryTally:
    """Contadores compartilhados pelos workers"""

    def __init__(self):
        self._lock = threading.Lock()
        self.sent = 0
        self.failed = 0
        self.removed = 0

    def record(self, outcome: DeliveryOutcome, removed: bool = False) -> None:
        with self._lock:
            if outcome == DeliveryOutcome.DELIVERED:
                self.sent += 1
            else:
                self.failed += 1
            if removed:
                self.removed += 1

    def result(self) -> PublishResult:
        with self._lock:
            return PublishResult(sent=self.sent, failed=self.failed, removed=self.removed)


class PushDispatcher:

    def __init__(
        self,
        store: SubscriptionStore,
        keypair: VapidKeyPair,
        signer: TokenSigner,
        transport: PushTransport,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency deve ser >= 1")
        self.store = store
        self.keypair = keypair
        self.signer = signer
        self.transport = transport
        self.max_concurrency = max_concurrency

    def publish(self, topic: str, payload: Union[NotificationPayload, bytes]) -> PublishResult:
        """
        Entrega `payload` a todos os inscritos de `topic` e devolve {sent, failed}.
        Só levanta exceção se não for possível listar os inscritos (StoreUnavailable).
        """
        subscribers = self.store.list_by_topic(topic)
        if not subscribers:
            logger.info(f"Nenhuma inscrição no tópico '{topic}'")
            return PublishResult()

        data = payload.to_bytes() if isinstance(payload, NotificationPayload) else payload
        tally = DeliveryTally()

        workers = min(self.max_concurrency, len(subscribers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push") as pool:
            futures = [pool.submit(self._attempt, sub, data, tally) for sub in subscribers]
        # Saindo do with todas as tentativas já terminaram
        for future, sub in zip(futures, subscribers):
            error = future.exception()
            if error is not None:
                logger.error(f"Erro inesperado entregando para {sub.endpoint}: {error!r}")
                tally.record(DeliveryOutcome.TRANSIENT)

        result = tally.result()
        logger.info(
            f"📢 Publicado no tópico '{topic}': sent={result.sent}, failed={result.failed}, removed={result.removed}"
        )
        return result

    def _attempt(self, sub: SubscriberRecord, data: bytes, tally: DeliveryTally) -> DeliveryOutcome:
        outcome = self.deliver_one(sub, data)

        removed = False
        if outcome == DeliveryOutcome.GONE:
            removed = self._prune(sub)

        tally.record(outcome, removed=removed)
        return outcome

    def deliver_one(self, sub: SubscriberRecord, data: bytes) -> DeliveryOutcome:
        """Pending -> Delivering -> DELIVERED | GONE | TRANSIENT, sem retry"""
        try:
            assertion, profile = self.signer.sign_for(self.keypair, sub.endpoint)
        except SigningFailure as e:
            logger.warning(f"Falha ao assinar token para {sub.endpoint}: {e}")
            return DeliveryOutcome.TRANSIENT

        result = self.transport.deliver(sub, data, assertion, urgency=profile.urgency)
        outcome = classify(result.status_code)

        if outcome == DeliveryOutcome.TRANSIENT:
            logger.warning(
                f"Falha ao enviar para {sub.endpoint} (status={result.status_code}): {result.detail}"
            )
        elif outcome == DeliveryOutcome.GONE:
            logger.info(f"Inscrição expirada (410 Gone): {sub.endpoint}")
        return outcome

    def _prune(self, sub: SubscriberRecord) -> bool:
        try:
            self.store.delete_by_endpoint(sub.endpoint)
        except StoreUnavailable as e:
            logger.error(f"❌ Não foi possível remover a inscrição {sub.endpoint}: {e}")
            return False
        logger.info(f"🧹 Inscrição removida: {sub.endpoint}")
        return True


def build_dispatcher(store: SubscriptionStore, keypair: VapidKeyPair, settings) -> PushDispatcher:
    """Monta o dispatcher com os parâmetros do Settings"""
    signer = TokenSigner(
        subject=settings.VAPID_SUBJECT,
        default_ttl=timedelta(hours=settings.VAPID_TOKEN_TTL_HOURS),
        apple_ttl=timedelta(minutes=settings.APPLE_TOKEN_TTL_MINUTES),
    )
    transport = PushTransport(timeout=settings.PUSH_TIMEOUT_SECONDS, ttl=settings.PUSH_TTL_SECONDS)
    return PushDispatcher(store, keypair, signer, transport, max_concurrency=settings.PUSH_MAX_CONCURRENCY)

