"""Fixtures compartilhadas.

O ambiente (banco SQLite temporário, arquivo de chaves, senha admin) precisa ser
definido ANTES de importar `app`, porque o Settings é lido no import.
"""
import os
import tempfile
import threading
import time

_TMP_DIR = tempfile.mkdtemp(prefix="pushem-tests-")
os.environ["DATABASE_URI"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["VAPID_KEYS_FILE"] = os.path.join(_TMP_DIR, "vapid_keys.json")
os.environ["ADMIN_PASSWORD"] = "admin-password-123"
os.environ["STATIC_DIR"] = os.path.join(_TMP_DIR, "no-frontend")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from app.db.base import Base
from app.db.init_db import init_db
from app.db.session import engine
from app.schemas.subscription import SubscriberRecord
from app.services.push import DeliveryResult
from app.services.subscriptions import SubscriptionStore
from app.services.vapid import VapidKeyPair, b64url_encode


@pytest.fixture(autouse=True)
def clean_db():
    """Cada teste começa com as tabelas vazias"""
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def store() -> SubscriptionStore:
    return SubscriptionStore()


@pytest.fixture(scope="session")
def keypair() -> VapidKeyPair:
    return VapidKeyPair.generate()


def make_browser_keys():
    """p256dh/auth válidos, como um navegador geraria no subscribe"""
    browser_key = ec.generate_private_key(ec.SECP256R1())
    p256dh = browser_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    auth = os.urandom(16)
    return b64url_encode(p256dh), b64url_encode(auth)


@pytest.fixture
def browser_keys():
    return make_browser_keys()


def make_subscriber(endpoint: str, topic: str = "alerts") -> SubscriberRecord:
    p256dh, auth = make_browser_keys()
    return SubscriberRecord(topic=topic, endpoint=endpoint, p256dh=p256dh, auth=auth)


class FakeTransport:
    """
    Transporte sem rede: o status de cada endpoint vem de `statuses`
    (padrão 201). Registra as chamadas e o pico de entregas simultâneas.
    """

    def __init__(self, statuses=None, delay: float = 0.0, error_endpoints=()):
        self.statuses = statuses or {}
        self.delay = delay
        self.error_endpoints = set(error_endpoints)
        self.calls = []
        self.in_flight = 0
        self.peak = 0
        self._lock = threading.Lock()

    def deliver(self, subscriber, payload, assertion, urgency=None):
        with self._lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            self.calls.append((subscriber, payload, assertion, urgency))
        try:
            if self.delay:
                time.sleep(self.delay)
            if subscriber.endpoint in self.error_endpoints:
                raise RuntimeError("transport exploded")
            status = self.statuses.get(subscriber.endpoint, 201)
            detail = None if status else "timeout"
            return DeliveryResult(status_code=status, detail=detail)
        finally:
            with self._lock:
                self.in_flight -= 1

    def assertion_for(self, endpoint):
        for subscriber, _, assertion, urgency in self.calls:
            if subscriber.endpoint == endpoint:
                return assertion, urgency
        raise KeyError(endpoint)
