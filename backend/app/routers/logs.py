"""
Router pour l'historique : calendrier mensuel et vue détail d'un jour.
Finalisation (verrou à sens unique), focus du jour, correction tap-to-cycle.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import LogFinalizedError, LogNotFoundError
from app.schemas.attendance import AttendanceStatus
from app.schemas.daily_log import DATE_KEY_PATTERN, MONTH_PATTERN, DailyLogSummary, DayDetail, FocusUpdate
from app.services import log_service

router = APIRouter(prefix="/api/v1/logs", tags=["Historique"])

DateKey = Path(..., pattern=DATE_KEY_PATTERN, description="Date YYYY-MM-DD")


def _raise_for(e: Exception):
    if isinstance(e, LogNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=409, detail=str(e))


def _detail_after_write(db: Session, date_key: str) -> DayDetail:
    # L'écriture a réussi : un détail absent signifie une relecture impossible
    detail = log_service.get_day_detail(db, date_key)
    if detail is None:
        raise HTTPException(status_code=503, detail="Données momentanément indisponibles.")
    return detail


@router.get("", response_model=List[DailyLogSummary], summary="Lister les journaux (calendrier)")
def list_logs(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="Mois YYYY-MM"),
    db: Session = Depends(get_db),
):
    """Tous les jours avec cours, ou uniquement ceux du mois demandé."""
    return log_service.list_logs(db, month)


@router.get("/{date_key}", response_model=DayDetail, summary="Détail d'un jour")
def get_day(date_key: str = DateKey, db: Session = Depends(get_db)):
    """Une ligne par élève actif ; un élève non marqué est affiché ABSENT."""
    detail = log_service.get_day_detail(db, date_key)
    if detail is None:
        raise HTTPException(status_code=404, detail="Aucun cours ce jour-là.")
    return detail


@router.put("/{date_key}/focus", response_model=DayDetail, summary="Modifier le focus du jour")
def update_focus(data: FocusUpdate, date_key: str = DateKey, db: Session = Depends(get_db)):
    try:
        log_service.update_focus(db, date_key, data.focus)
    except (LogNotFoundError, LogFinalizedError) as e:
        _raise_for(e)
    return _detail_after_write(db, date_key)


@router.post("/{date_key}/finalize", response_model=DayDetail, summary="Finaliser le journal")
def finalize(date_key: str = DateKey, db: Session = Depends(get_db)):
    """
    Verrouille le journal : plus aucun marquage ni modification.
    Irréversible ; un second appel est sans effet.
    """
    try:
        log_service.finalize_log(db, date_key)
    except LogNotFoundError as e:
        _raise_for(e)
    return _detail_after_write(db, date_key)


@router.post(
    "/{date_key}/students/{student_id}/cycle",
    response_model=AttendanceStatus,
    summary="Passer au statut suivant (tap-to-cycle)",
)
def cycle_status(student_id: str, date_key: str = DateKey, db: Session = Depends(get_db)):
    """Rotation PRESENT → ABSENT → LATE → PRESENT. Refusé sur un journal finalisé (409)."""
    try:
        return log_service.cycle_status(db, date_key, student_id)
    except (LogNotFoundError, LogFinalizedError) as e:
        _raise_for(e)
