"""
Rappels à l'instructeur, vérifiés périodiquement par le scheduler.

- Matin (MORNING_REMINDER_HOUR, minutes 0..REMINDER_WINDOW_MINUTES) :
  aucun journal aujourd'hui → "Cours aujourd'hui ?"
- Soir (EVENING_REMINDER_HOUR, même fenêtre) :
  journal présent mais non finalisé → "Finaliser la présence"

La vérification tourne plusieurs fois par fenêtre (tâche de fond approximative),
chaque rappel n'est donc envoyé qu'une fois par jour.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from app.config import settings
from app.models.daily_log import DailyLog
from app.schemas.settings import SettingsResponse
from app.services import email_service, log_store, settings_service
from app.services.dates import date_key, local_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reminder:
    kind: str      # MORNING, EVENING
    title: str
    message: str


MORNING_REMINDER = Reminder(
    kind="MORNING",
    title="Cours aujourd'hui ?",
    message="Bonjour Sensei ! N'oubliez pas de prendre les présences si vous avez cours aujourd'hui.",
)
EVENING_REMINDER = Reminder(
    kind="EVENING",
    title="Finaliser la présence",
    message="Le journal du jour n'est pas encore finalisé. Un instant pour clôturer la séance !",
)

# (type de rappel, clé du jour) déjà envoyés par ce processus
_sent: Set[Tuple[str, str]] = set()


def _in_window(now: datetime, hour: int) -> bool:
    return now.hour == hour and now.minute <= settings.REMINDER_WINDOW_MINUTES


def due_reminders(
    now: datetime,
    prefs: SettingsResponse,
    today_log: Optional[DailyLog],
) -> List[Reminder]:
    """Rappels à envoyer à l'instant `now`, selon les préférences et le journal du jour."""
    due = []
    if prefs.morning_reminder and _in_window(now, settings.MORNING_REMINDER_HOUR):
        if today_log is None:
            due.append(MORNING_REMINDER)
    if prefs.evening_reminder and _in_window(now, settings.EVENING_REMINDER_HOUR):
        if today_log is not None and not today_log.finalized:
            due.append(EVENING_REMINDER)
    return due


def run_reminder_check(
    db: Session,
    now: Optional[datetime] = None,
    sent: Optional[Set[Tuple[str, str]]] = None,
) -> List[Reminder]:
    """
    Vérifie et envoie les rappels dus. Retourne les rappels effectivement traités.
    Sans email configuré, le rappel est seulement journalisé.
    """
    now = now or local_now()
    sent = _sent if sent is None else sent
    key = date_key(now)

    # Seuls les envois du jour servent au dédoublonnage
    sent.difference_update({entry for entry in sent if entry[1] != key})

    if not (_in_window(now, settings.MORNING_REMINDER_HOUR) or _in_window(now, settings.EVENING_REMINDER_HOUR)):
        return []

    prefs = settings_service.get_settings(db)
    today_log = log_store.get_log(db, key)

    delivered = []
    for reminder in due_reminders(now, prefs, today_log):
        if (reminder.kind, key) in sent:
            logger.debug("Rappel %s déjà envoyé pour %s", reminder.kind, key)
            continue

        if prefs.notification_email:
            try:
                email_service.send_reminder_email(prefs.notification_email, reminder.title, reminder.message)
            except Exception as exc:
                logger.error("Erreur envoi rappel %s à %s : %s", reminder.kind, prefs.notification_email, exc)
                continue
        else:
            logger.info("Rappel %s (aucun email configuré) : %s", reminder.kind, reminder.title)

        sent.add((reminder.kind, key))
        delivered.append(reminder)

    return delivered
