"""
Planificateur APScheduler pour les rappels à l'instructeur.

Le job s'exécute toutes les REMINDER_CHECK_INTERVAL_MINUTES minutes : une tâche
de fond n'est pas exacte, on vérifie donc à intervalle régulier si l'on se trouve
dans la fenêtre du matin ou du soir.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone=settings.TIMEZONE)


def _check_reminders_scheduled() -> None:
    """
    Tâche planifiée : envoie le rappel du matin ou du soir s'il est dû.
    Import local pour éviter les imports circulaires.
    """
    from app.services.reminder_service import run_reminder_check

    db = SessionLocal()
    try:
        delivered = run_reminder_check(db)
        for reminder in delivered:
            logger.info("Rappel %s traité : %s", reminder.kind, reminder.title)
    except Exception as exc:
        logger.error("Erreur lors de la vérification des rappels : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _check_reminders_scheduled,
        trigger="interval",
        minutes=settings.REMINDER_CHECK_INTERVAL_MINUTES,
        id="daily_reminder_check",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré — vérification des rappels toutes les %d minutes.",
        settings.REMINDER_CHECK_INTERVAL_MINUTES,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
