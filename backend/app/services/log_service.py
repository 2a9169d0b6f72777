"""
Vue détail d'un jour et calendrier : finalisation, focus, correction manuelle
(tap-to-cycle) et résumés mensuels.

Un élève non marqué au moment de la lecture est considéré ABSENT.
Une fois finalized=True, le journal n'accepte plus aucune écriture.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import LogFinalizedError, LogNotFoundError, StoreReadError
from app.models.daily_log import DailyLog
from app.schemas.attendance import AttendanceStatus, next_status
from app.schemas.daily_log import AttendanceCounts, DailyLogSummary, DayDetail, DayDetailRow
from app.schemas.student import StudentResponse
from app.services import log_store, roster_store
from app.services.streak_service import reconcile_streaks

logger = logging.getLogger(__name__)


def status_for(log: Optional[DailyLog], student_id: str) -> AttendanceStatus:
    """Statut lu avec ABSENT par défaut pour les élèves absents de la map."""
    raw = (log.attendance or {}).get(student_id) if log is not None else None
    try:
        return AttendanceStatus(raw) if raw is not None else AttendanceStatus.ABSENT
    except ValueError:
        return AttendanceStatus.ABSENT


def _count(statuses) -> AttendanceCounts:
    statuses = list(statuses)
    return AttendanceCounts(
        present=statuses.count(AttendanceStatus.PRESENT),
        absent=statuses.count(AttendanceStatus.ABSENT),
        late=statuses.count(AttendanceStatus.LATE),
    )


def _summary(log: DailyLog) -> DailyLogSummary:
    attendance = log.attendance or {}
    return DailyLogSummary(
        date_key=log.date_key,
        date=log.date,
        focus=log.focus or "",
        finalized=bool(log.finalized),
        marked_count=len(attendance),
        counts=_count(status_for(log, sid) for sid in attendance),
    )


def list_logs(db: Session, month: Optional[str] = None) -> List[DailyLogSummary]:
    """
    Résumés pour le calendrier : tous les journaux, ou ceux d'un mois (préfixe YYYY-MM).
    Une lecture impossible donne un calendrier vide (journalisé).
    """
    try:
        logs = log_store.get_logs_for_month(db, month) if month else log_store.get_all_logs(db)
    except StoreReadError:
        return []
    return [_summary(log) for log in logs]


def get_day_detail(db: Session, date_key: str) -> Optional[DayDetail]:
    """
    Détail d'un jour : une ligne par élève actif. None si aucun cours ce jour-là
    ou si le journal est illisible ; roster illisible → détail sans lignes.
    """
    try:
        log = log_store.get_log(db, date_key)
    except StoreReadError:
        return None
    if log is None:
        return None

    try:
        students = roster_store.get_active_students(db)
    except StoreReadError:
        students = []
    attendance = log.attendance or {}
    rows = [
        DayDetailRow(
            student_id=s.id,
            name=s.name,
            belt=s.belt,
            status=status_for(log, s.id),
            is_marked=s.id in attendance,
        )
        for s in students
    ]

    return DayDetail(
        date_key=log.date_key,
        date=log.date,
        focus=log.focus or "",
        finalized=bool(log.finalized),
        attendance={sid: status_for(log, sid) for sid in attendance},
        rows=rows,
        counts=_count(r.status for r in rows),
    )


def _require_open_log(db: Session, date_key: str) -> DailyLog:
    log = log_store.get_log(db, date_key)
    if log is None:
        raise LogNotFoundError(f"Journal {date_key} introuvable.")
    if log.finalized:
        raise LogFinalizedError(f"Le journal du {date_key} est finalisé.")
    return log


def finalize_log(db: Session, date_key: str) -> DailyLog:
    """Verrouille le journal (sens unique). Sans effet sur un journal déjà finalisé."""
    log = log_store.get_log(db, date_key)
    if log is None:
        raise LogNotFoundError(f"Journal {date_key} introuvable.")
    if log.finalized:
        return log

    log = log_store.update_field(db, date_key, "finalized", True)
    logger.info("Journal %s finalisé", date_key)
    return log


def update_focus(db: Session, date_key: str, focus: str) -> DailyLog:
    _require_open_log(db, date_key)
    return log_store.update_field(db, date_key, "focus", focus.strip())


def cycle_status(db: Session, date_key: str, student_id: str) -> AttendanceStatus:
    """
    Correction manuelle : le statut de l'élève passe au suivant dans la rotation
    PRESENT → ABSENT → LATE → PRESENT. Écrit par chemin pointé puis recalcule
    la série de l'élève concerné.
    """
    log = _require_open_log(db, date_key)
    student = roster_store.get_student(db, student_id)
    if student is None:
        raise LogNotFoundError(f"Élève {student_id} introuvable.")

    new_status = next_status(status_for(log, student_id))
    log_store.update_field(db, date_key, f"attendance.{student_id}", new_status.value)
    logger.info("Journal %s : %s → %s", date_key, student_id, new_status.value)

    history = log_store.get_all_logs(db)
    reconcile_streaks(db, [StudentResponse.model_validate(student)], history)
    return new_status
