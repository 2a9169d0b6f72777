"""
Calcul et réconciliation des séries (streaks) de présence.

La valeur current_streak stockée sur l'élève n'est qu'un cache : la vérité est
recalculée depuis l'historique complet des journaux, et toute valeur divergente
est corrigée en un seul batch atomique.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from app.exceptions import StoreWriteError
from app.schemas.attendance import ATTENDED_STATUSES, AttendanceStatus
from app.schemas.student import StudentResponse
from app.services import roster_store
from app.services.dates import local_today, parse_date_key, to_local_date

logger = logging.getLogger(__name__)

STREAK_FIELD = "current_streak"


def calculate_streak(
    attended: Iterable[Union[date, datetime]],
    today: Optional[date] = None,
) -> int:
    """
    Nombre de jours consécutifs de présence se terminant aujourd'hui.

    Si l'élève n'est pas encore venu aujourd'hui, la série part d'hier :
    une série encore vivante ne retombe pas à zéro avant la fin de la journée.
    Le premier trou arrête le décompte, quel que soit l'historique antérieur.
    """
    days = {to_local_date(d) for d in attended}
    if not days:
        return 0

    today = today or local_today()
    cursor = today if today in days else today - timedelta(days=1)

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def attended_dates(logs: Iterable, student_id: str) -> List[date]:
    """Dates (clé du journal) où l'élève est marqué PRESENT ou LATE."""
    dates = []
    for log in logs:
        raw = (log.attendance or {}).get(student_id)
        if raw is None:
            continue
        try:
            status = AttendanceStatus(raw)
        except ValueError:
            logger.debug("Statut inconnu ignoré (%s, %s) : %r", log.date_key, student_id, raw)
            continue
        if status in ATTENDED_STATUSES:
            dates.append(parse_date_key(log.date_key))
    return dates


def compute_corrections(
    students: Sequence[StudentResponse],
    logs: Sequence,
    today: Optional[date] = None,
) -> Dict[str, int]:
    """Retourne {student_id: nouvelle_série} pour les seuls élèves dont le cache diverge."""
    today = today or local_today()
    corrections = {}
    for student in students:
        streak = calculate_streak(attended_dates(logs, student.id), today)
        if streak != student.current_streak:
            corrections[student.id] = streak
    return corrections


@dataclass(frozen=True)
class ReconcileResult:
    students: List[StudentResponse]   # Copies corrigées, ordre d'entrée conservé
    corrected: int
    error: Optional[str] = None


def reconcile_streaks(
    db: Session,
    students: Sequence[StudentResponse],
    logs: Sequence,
    today: Optional[date] = None,
) -> ReconcileResult:
    """
    Recalcule les séries et corrige les valeurs divergentes.

    Les copies en mémoire sont corrigées immédiatement (l'interface n'attend pas
    l'écriture). Les corrections partent en un seul batch ; un échec est journalisé
    et remonté dans `error`, sans annuler les corrections en mémoire.
    """
    corrections = compute_corrections(students, logs, today)
    corrected = [
        s.model_copy(update={STREAK_FIELD: corrections[s.id]}) if s.id in corrections else s
        for s in students
    ]

    if not corrections:
        logger.debug("Séries à jour pour %d élèves, aucune écriture.", len(students))
        return ReconcileResult(students=corrected, corrected=0)

    try:
        roster_store.batch_update_field(
            db, [(sid, STREAK_FIELD, value) for sid, value in corrections.items()]
        )
    except StoreWriteError as exc:
        logger.error("Échec du batch de correction des séries : %s", exc)
        return ReconcileResult(
            students=corrected,
            corrected=len(corrections),
            error=f"Échec de la correction des séries : {exc}",
        )

    logger.info("Séries corrigées pour %d élève(s)", len(corrections))
    return ReconcileResult(students=corrected, corrected=len(corrections))
