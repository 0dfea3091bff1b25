from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # --- GERAIS ---
    PROJECT_NAME: str = "Pushem"
    # Vazio = rotas públicas na raiz (/publish/{topic}, /subscribe/{topic}...)
    API_V1_STR: str = ""
    LOG_LEVEL: str = "INFO"

    # --- BANCO DE DADOS ---
    DATABASE_URI: str = "sqlite:///./pushem.db"

    # --- VAPID / WEB PUSH ---
    VAPID_KEYS_FILE: str = "vapid_keys.json"
    VAPID_SUBJECT: str = "mailto:admin@pushem.local"
    VAPID_TOKEN_TTL_HOURS: int = 12
    # A Apple rejeita tokens com validade >= 1h
    APPLE_TOKEN_TTL_MINUTES: int = 45

    # --- ENTREGA ---
    PUSH_MAX_CONCURRENCY: int = 10
    PUSH_TIMEOUT_SECONDS: float = 30.0
    PUSH_TTL_SECONDS: int = 86400

    # --- ADMIN ---
    # Sem senha o painel admin fica desabilitado
    ADMIN_PASSWORD: str = ""
    ADMIN_TOKEN_EXPIRY_MINUTES: int = 60
    MAX_LOGIN_ATTEMPTS: int = 5
    LOGIN_RATE_LIMIT_WINDOW_MINUTES: int = 15

    # --- LIMPEZA DO HISTÓRICO ---
    MESSAGE_RETENTION_DAYS: int = 7
    CLEANUP_INTERVAL_HOURS: int = 24

    # --- FRONTEND ---
    CORS_ORIGINS: str = ""
    STATIC_DIR: str = "web/dist"

    @field_validator("VAPID_TOKEN_TTL_HOURS")
    @classmethod
    def check_token_ttl(cls, v: int) -> int:
        if not 0 < v <= 24:
            raise ValueError("VAPID_TOKEN_TTL_HOURS deve estar entre 1 e 24")
        return v

    @field_validator("APPLE_TOKEN_TTL_MINUTES")
    @classmethod
    def check_apple_ttl(cls, v: int) -> int:
        if not 0 < v < 60:
            raise ValueError("APPLE_TOKEN_TTL_MINUTES deve ser menor que 60")
        return v

    @field_validator("PUSH_MAX_CONCURRENCY", "ADMIN_TOKEN_EXPIRY_MINUTES", "MAX_LOGIN_ATTEMPTS",
                     "LOGIN_RATE_LIMIT_WINDOW_MINUTES", "MESSAGE_RETENTION_DAYS", "CLEANUP_INTERVAL_HOURS")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("o valor deve ser positivo")
        return v

    @property
    def cors_origins(self) -> List[str]:
        """Lista de origens permitidas (padrão: só localhost)"""
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        return origins or ["http://localhost:8080", "http://localhost:5173"]

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
