"""
Assinatura dos tokens VAPID (JWT ES256) por provedor de push.

Quase todos os provedores aceitam `aud` igual à origem do endpoint e validade de
até 24h. A Apple (web.push.apple.com) exige `aud` fixo na origem dela e validade
estritamente menor que 1h; errar isso derruba só os inscritos da Apple, em silêncio.
"""
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional, Tuple
from urllib.parse import urlsplit

from jose import jwt
from jose.exceptions import JOSEError

from app.core.exceptions import SigningFailure
from app.services.vapid import VapidKeyPair

logger = logging.getLogger(__name__)

APPLE_PUSH_HOST = "push.apple.com"
APPLE_AUDIENCE = "https://web.push.apple.com"

DEFAULT_TOKEN_TTL = timedelta(hours=12)
APPLE_TOKEN_TTL = timedelta(minutes=45)


def endpoint_origin(endpoint: str) -> str:
    """scheme://host[:porta] do endpoint, sem caminho nem credenciais"""
    parts = urlsplit(endpoint)
    host = parts.hostname
    if not parts.scheme or not host:
        raise ValueError(f"endpoint sem origem: {endpoint!r}")
    if ":" in host:
        host = f"[{host}]"
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"


def is_apple_endpoint(endpoint: str) -> bool:
    host = (urlsplit(endpoint).hostname or "").lower()
    return host == APPLE_PUSH_HOST or host.endswith("." + APPLE_PUSH_HOST)


@dataclass(frozen=True)
class ProviderProfile:
    name: str
    token_ttl: timedelta
    # None = usa a origem do próprio endpoint
    fixed_audience: Optional[str] = None
    urgency: Optional[str] = None

    def audience_for(self, endpoint: str) -> str:
        if self.fixed_audience:
            return self.fixed_audience
        return endpoint_origin(endpoint)


def determine_provider(
    endpoint: str,
    default_ttl: timedelta = DEFAULT_TOKEN_TTL,
    apple_ttl: timedelta = APPLE_TOKEN_TTL,
) -> ProviderProfile:
    if is_apple_endpoint(endpoint):
        return ProviderProfile(name="apple", token_ttl=apple_ttl, fixed_audience=APPLE_AUDIENCE, urgency="high")
    return ProviderProfile(name="generic", token_ttl=default_ttl)


@dataclass(frozen=True)
class Assertion:
    token: str
    public_key: str
    audience: str
    expires_at: int

    def authorization_header(self) -> str:
        return f"vapid t={self.token}, k={self.public_key}"


def normalize_subject(subject: str) -> str:
    if subject.startswith("mailto:") or subject.startswith("https:"):
        return subject
    return f"mailto:{subject}"


@lru_cache(maxsize=8)
def _pem_for(keypair: VapidKeyPair) -> str:
    return keypair.private_pem()


class TokenSigner:

    def __init__(
        self,
        subject: str,
        default_ttl: timedelta = DEFAULT_TOKEN_TTL,
        apple_ttl: timedelta = APPLE_TOKEN_TTL,
    ):
        self.subject = normalize_subject(subject)
        self.default_ttl = default_ttl
        self.apple_ttl = apple_ttl

    def sign(self, keypair: VapidKeyPair, subject: str, audience: str, ttl: timedelta) -> Assertion:
        expires_at = int(time.time() + ttl.total_seconds())
        claims = {
            "aud": audience,
            "sub": normalize_subject(subject),
            "exp": expires_at,
        }
        try:
            token = jwt.encode(claims, _pem_for(keypair), algorithm="ES256", headers={"typ": "JWT"})
        except (JOSEError, ValueError, TypeError) as e:
            raise SigningFailure(f"falha ao assinar token para {audience}: {e}") from e

        return Assertion(token=token, public_key=keypair.public_key, audience=audience, expires_at=expires_at)

    def profile_for(self, endpoint: str) -> ProviderProfile:
        return determine_provider(endpoint, default_ttl=self.default_ttl, apple_ttl=self.apple_ttl)

    def sign_for(self, keypair: VapidKeyPair, endpoint: str) -> Tuple[Assertion, ProviderProfile]:
        """Token já com audiência e validade do provedor dono do endpoint"""
        profile = self.profile_for(endpoint)
        try:
            audience = profile.audience_for(endpoint)
        except ValueError as e:
            raise SigningFailure(str(e)) from e
        return self.sign(keypair, self.subject, audience, profile.token_ttl), profile
