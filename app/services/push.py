import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests
from pywebpush import WebPusher, WebPushException

from app.schemas.subscription import SubscriberRecord
from app.services.signer import Assertion

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_TTL = 86400


@dataclass(frozen=True)
class DeliveryResult:
    # None = a requisição nem chegou a ter resposta (rede, timeout, chave inválida)
    status_code: Optional[int]
    detail: Optional[str] = None


class PushTransport:
    """Faz UMA entrega criptografada (aes128gcm) para o endpoint de um inscrito.
    Não decide se deu certo: devolve o status cru para o classificador."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        ttl: int = DEFAULT_TTL,
        requests_session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.ttl = ttl
        self.requests_session = requests_session

    def deliver(
        self,
        subscriber: SubscriberRecord,
        payload: Union[bytes, str],
        assertion: Assertion,
        urgency: Optional[str] = None,
    ) -> DeliveryResult:
        headers = {"Authorization": assertion.authorization_header()}
        if urgency:
            headers["Urgency"] = urgency

        try:
            pusher = WebPusher(subscriber.subscription_info(), requests_session=self.requests_session)
            response = pusher.send(
                data=payload,
                headers=headers,
                ttl=self.ttl,
                content_encoding="aes128gcm",
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return DeliveryResult(status_code=None, detail=f"erro de rede: {e}")
        except (WebPushException, ValueError) as e:
            # Chaves p256dh/auth inválidas: não há como criptografar o payload
            return DeliveryResult(status_code=None, detail=f"inscrição inválida: {e}")

        detail = None
        if not 200 <= response.status_code < 300:
            detail = (response.text or "")[:500]
            logger.debug(f"Resposta do provedor {response.status_code}: {detail}")
        return DeliveryResult(status_code=response.status_code, detail=detail)
