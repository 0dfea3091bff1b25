from datetime import datetime, timedelta, timezone
from typing import Optional
import secrets

from jose import jwt, JWTError
from passlib.context import CryptContext

ALGORITHM = "HS256"

# Hash de senha admin e segredos de tópico (pbkdf2, sem dependência nativa)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Segredo dos tokens admin: gerado a cada boot, logins antigos caem no restart
JWT_SECRET = secrets.token_urlsafe(32)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_admin_token(expires_delta: timedelta, secret: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "admin": True,
        "iss": "pushem",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(to_encode, secret or JWT_SECRET, algorithm=ALGORITHM)


def validate_admin_token(token: str, secret: Optional[str] = None) -> bool:
    try:
        payload = jwt.decode(token, secret or JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return False
    return payload.get("admin") is True
