from apscheduler.schedulers.background import BackgroundScheduler
from typing import Optional
import logging

from app.core.config import settings
from app.core.rate_limit import LoginRateLimiter
from app.db.session import SessionLocal
from app.services.history import HistoryService

# Configuração de Logs
logger = logging.getLogger(__name__)

# Inicializa o agendador
scheduler = BackgroundScheduler()

def cleanup_messages_job():
    """Apaga do histórico as mensagens mais velhas que MESSAGE_RETENTION_DAYS"""
    db = SessionLocal()
    history = HistoryService()

    try:
        count = history.delete_older_than(db, settings.MESSAGE_RETENTION_DAYS)
        if count > 0:
            logger.info(
                f"🧹 [Scheduler] {count} mensagens antigas removidas "
                f"(mais de {settings.MESSAGE_RETENTION_DAYS} dias)"
            )
            logger.info(f"Mensagens no histórico: {history.count(db)}")
    except Exception as e:
        logger.error(f"❌ Erro na limpeza do histórico: {e}")
        db.rollback()
    finally:
        db.close()

def start_scheduler(rate_limiter: Optional[LoginRateLimiter] = None):
    if not scheduler.running:
        scheduler.add_job(cleanup_messages_job, 'interval', hours=settings.CLEANUP_INTERVAL_HOURS,
                          id="cleanup_messages", replace_existing=True)
        if rate_limiter is not None:
            scheduler.add_job(rate_limiter.prune, 'interval', minutes=5,
                              id="prune_login_attempts", replace_existing=True)
        scheduler.start()
        logger.info(
            f"--- 🕒 Scheduler Iniciado (retenção={settings.MESSAGE_RETENTION_DAYS} dias, "
            f"intervalo={settings.CLEANUP_INTERVAL_HOURS}h) ---"
        )

def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
