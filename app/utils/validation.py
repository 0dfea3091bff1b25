import ipaddress
import re
from urllib.parse import urlsplit

MAX_TOPIC_LENGTH = 100
MAX_MESSAGE_LENGTH = 4096
MAX_TITLE_LENGTH = 256
MAX_SECRET_LENGTH = 256
MIN_SECRET_LENGTH = 8

# Letras, números, hífen, underscore e ponto
TOPIC_REGEX = re.compile(r"^[a-zA-Z0-9_.-]+$")

# Reservados para rotas do sistema
FORBIDDEN_TOPICS = {"admin", "system", "api", "vapid", "health", "metrics"}

WEAK_SECRETS = {"password", "12345678", "qwertyui"}


class ValidationError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


def sanitize_string(value: str) -> str:
    """Remove bytes nulos e espaços nas pontas"""
    return value.replace("\x00", "").strip()


def validate_topic(topic: str) -> None:
    if not topic:
        raise ValidationError("topic", "topic cannot be empty")
    if len(topic) > MAX_TOPIC_LENGTH:
        raise ValidationError("topic", f"topic must be at most {MAX_TOPIC_LENGTH} characters")
    if not TOPIC_REGEX.match(topic):
        raise ValidationError("topic", "topic can only contain letters, numbers, hyphens, underscores, and dots")
    if ".." in topic:
        raise ValidationError("topic", "topic contains invalid characters")
    if topic.lower() in FORBIDDEN_TOPICS:
        raise ValidationError("topic", "topic name is reserved")


def validate_message(title: str, message: str) -> None:
    if not message:
        raise ValidationError("message", "message cannot be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError("title", f"title must be at most {MAX_TITLE_LENGTH} characters")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError("message", f"message must be at most {MAX_MESSAGE_LENGTH} characters")
    if "\x00" in title or "\x00" in message:
        raise ValidationError("message", "message contains null bytes")


def validate_secret(secret: str) -> None:
    if not secret:
        raise ValidationError("secret", "secret cannot be empty")
    if len(secret) < MIN_SECRET_LENGTH:
        raise ValidationError("secret", f"secret must be at least {MIN_SECRET_LENGTH} characters")
    if len(secret) > MAX_SECRET_LENGTH:
        raise ValidationError("secret", f"secret must be at most {MAX_SECRET_LENGTH} characters")
    if secret.lower() in WEAK_SECRETS:
        raise ValidationError("secret", "secret is too weak")


def validate_endpoint_url(endpoint: str) -> None:
    """Endpoint de push precisa ser HTTPS e público (proteção contra SSRF)"""
    if not endpoint:
        raise ValidationError("endpoint", "endpoint cannot be empty")

    try:
        parts = urlsplit(endpoint)
        host = (parts.hostname or "").lower()
    except ValueError:
        raise ValidationError("endpoint", "invalid URL format")

    if parts.scheme != "https":
        raise ValidationError("endpoint", "endpoint must use HTTPS")
    if not host:
        raise ValidationError("endpoint", "invalid URL format")

    if host == "localhost" or host.endswith(".localhost"):
        raise ValidationError("endpoint", "endpoint must be a public URL")

    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return  # nome de domínio
    if ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_unspecified or ip.is_reserved:
        raise ValidationError("endpoint", "endpoint must be a public URL")
