from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from app.core import security
from app.core.config import settings
from app.core.exceptions import StoreUnavailable
from app.core.rate_limit import LoginRateLimiter
from app.api.v1.router import api_router
from app.services.dispatcher import build_dispatcher
from app.services.scheduler import start_scheduler, stop_scheduler
from app.services.subscriptions import SubscriptionStore
from app.services.vapid import KeyManager
from app.db.init_db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("--- 🚀 Iniciando Pushem ---")
    init_db()

    # Sem chave não há entrega: CorruptKeyStore derruba o boot de propósito
    key_manager = KeyManager(settings.VAPID_KEYS_FILE)
    keypair = key_manager.load_or_create()

    app.state.key_manager = key_manager
    app.state.dispatcher = build_dispatcher(SubscriptionStore(), keypair, settings)
    app.state.login_rate_limiter = LoginRateLimiter(
        settings.MAX_LOGIN_ATTEMPTS, settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES
    )

    if settings.ADMIN_PASSWORD:
        app.state.admin_password_hash = security.get_password_hash(settings.ADMIN_PASSWORD)
        logger.info("Painel admin habilitado (token JWT)")
    else:
        app.state.admin_password_hash = None
        logger.warning("ADMIN_PASSWORD não definido: painel admin desabilitado")

    start_scheduler(app.state.login_rate_limiter)
    yield
    stop_scheduler()

app = FastAPI(
    title=settings.PROJECT_NAME,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type", "X-Pushem-Key"],
    expose_headers=["Link"],
    max_age=300,
)

@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error(f"❌ Banco indisponível em {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "failed to get subscriptions"})

app.include_router(api_router, prefix=settings.API_V1_STR)

# Frontend (SPA) servido pelo próprio backend, se o build existir
if os.path.isdir(settings.STATIC_DIR):
    @app.get("/admin", include_in_schema=False)
    def admin_page():
        return FileResponse(os.path.join(settings.STATIC_DIR, "index.html"))

    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
else:
    logger.warning(f"Diretório do frontend '{settings.STATIC_DIR}' não encontrado")
