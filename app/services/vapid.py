"""
Gerência do par de chaves VAPID (P-256).

O par é criado uma única vez e reaproveitado para sempre: trocar a chave invalida
todas as inscrições existentes, porque o navegador registra a chave pública no
momento do subscribe.
"""
import base64
import binascii
import json
import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from app.core.exceptions import CorruptKeyStore

logger = logging.getLogger(__name__)

PRIVATE_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 65


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _public_point(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )


@dataclass(frozen=True)
class VapidKeyPair:
    """Par de chaves em base64url (sem padding), exatamente como fica no arquivo."""
    private_key: str
    public_key: str

    @property
    def private_bytes(self) -> bytes:
        return b64url_decode(self.private_key)

    @property
    def public_bytes(self) -> bytes:
        return b64url_decode(self.public_key)

    def signing_key(self) -> ec.EllipticCurvePrivateKey:
        scalar = int.from_bytes(self.private_bytes, "big")
        return ec.derive_private_key(scalar, ec.SECP256R1())

    def private_pem(self) -> str:
        return self.signing_key().private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    @classmethod
    def generate(cls) -> "VapidKeyPair":
        private_key = ec.generate_private_key(ec.SECP256R1())
        # O escalar pode ter menos de 32 bytes: completa com zeros à esquerda
        scalar = private_key.private_numbers().private_value.to_bytes(PRIVATE_KEY_SIZE, "big")
        return cls(
            private_key=b64url_encode(scalar),
            public_key=b64url_encode(_public_point(private_key)),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "VapidKeyPair":
        """Valida o conteúdo do arquivo. Qualquer inconsistência vira CorruptKeyStore."""
        if not isinstance(data, dict):
            raise CorruptKeyStore("arquivo de chaves não contém um objeto JSON")

        private_b64 = data.get("private_key")
        public_b64 = data.get("public_key")
        if not isinstance(private_b64, str) or not isinstance(public_b64, str):
            raise CorruptKeyStore("arquivo de chaves sem private_key/public_key")

        try:
            private_raw = b64url_decode(private_b64)
            public_raw = b64url_decode(public_b64)
        except (binascii.Error, ValueError) as e:
            raise CorruptKeyStore(f"chave VAPID não é base64url válido: {e}") from e

        if len(private_raw) != PRIVATE_KEY_SIZE:
            raise CorruptKeyStore(f"chave privada com {len(private_raw)} bytes (esperado {PRIVATE_KEY_SIZE})")
        if len(public_raw) != PUBLIC_KEY_SIZE or public_raw[0] != 0x04:
            raise CorruptKeyStore("chave pública não é um ponto P-256 não comprimido")

        try:
            derived = _public_point(ec.derive_private_key(int.from_bytes(private_raw, "big"), ec.SECP256R1()))
        except ValueError as e:
            raise CorruptKeyStore(f"chave privada fora da curva P-256: {e}") from e
        if derived != public_raw:
            raise CorruptKeyStore("chave pública não corresponde à chave privada")

        return cls(private_key=b64url_encode(private_raw), public_key=b64url_encode(public_raw))

    def to_dict(self) -> dict:
        return {"private_key": self.private_key, "public_key": self.public_key}


class KeyManager:
    """Carrega o par de chaves do disco ou gera (e persiste) um novo no primeiro boot."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._keypair: Optional[VapidKeyPair] = None

    def load_or_create(self) -> VapidKeyPair:
        if self._keypair is not None:
            return self._keypair

        if self.path.exists():
            self._keypair = self._load()
            logger.info(f"🔑 Chaves VAPID carregadas de {self.path}")
            return self._keypair

        logger.info("🔑 Gerando novas chaves VAPID...")
        keypair = VapidKeyPair.generate()
        try:
            self._persist(keypair)
        except FileExistsError:
            # Outro processo criou o arquivo primeiro: a chave dele vale para todos
            self._keypair = self._load()
            return self._keypair

        logger.info(f"🔑 Chaves VAPID salvas em {self.path} (public={keypair.public_key[:20]}…)")
        self._keypair = keypair
        return keypair

    def public_key(self) -> bytes:
        return self.load_or_create().public_bytes

    def _load(self) -> VapidKeyPair:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise CorruptKeyStore(f"não foi possível ler {self.path}: {e}") from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptKeyStore(f"{self.path} não é JSON válido: {e}") from e
        return VapidKeyPair.from_dict(data)

    def _persist(self, keypair: VapidKeyPair) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Escreve num temporário (0600) e só então publica com link(): o arquivo final
        # nunca aparece vazio ou pela metade, e link() falha se a chave já existir.
        tmp = self.path.with_name(f".{self.path.name}.{os.getpid()}.{secrets.token_hex(4)}.tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(keypair.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.link(tmp, self.path)
        finally:
            tmp.unlink(missing_ok=True)
