"""
Store des journaux quotidiens (table daily_logs), clé naturelle YYYY-MM-DD.

Sémantique de store documentaire :
- merge_log   : upsert avec fusion (la map attendance est fusionnée clé par clé,
                les autres champs ne sont écrasés que s'ils sont fournis)
- update_field: mise à jour d'un chemin pointé (ex. "attendance.<student_id>"),
                échoue si le journal n'existe pas
Le verrou finalized est à sens unique : aucune écriture ne peut le repasser à False.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import LogFinalizedError, LogNotFoundError, StoreReadError, StoreWriteError
from app.models.daily_log import DailyLog

logger = logging.getLogger(__name__)

MERGEABLE_FIELDS = {"date", "focus", "finalized", "attendance"}


def get_log(db: Session, date_key: str) -> Optional[DailyLog]:
    """Journal d'un jour, ou None si aucun cours ce jour-là."""
    try:
        return db.get(DailyLog, date_key)
    except SQLAlchemyError as exc:
        logger.error("Lecture du journal %s impossible : %s", date_key, exc)
        raise StoreReadError(str(exc)) from exc


def get_all_logs(db: Session) -> List[DailyLog]:
    """Historique complet, trié par date."""
    try:
        return list(db.execute(
            select(DailyLog).order_by(DailyLog.date_key)
        ).scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Lecture de l'historique impossible : %s", exc)
        raise StoreReadError(str(exc)) from exc


def get_logs_for_month(db: Session, prefix: str) -> List[DailyLog]:
    """Journaux d'un mois, par préfixe de clé YYYY-MM."""
    try:
        return list(db.execute(
            select(DailyLog)
            .where(DailyLog.date_key.startswith(f"{prefix}-"))
            .order_by(DailyLog.date_key)
        ).scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Lecture des journaux de %s impossible : %s", prefix, exc)
        raise StoreReadError(str(exc)) from exc


def _check_latch(log: Optional[DailyLog], field: str, value: Any) -> None:
    if field == "finalized" and log is not None and log.finalized and not value:
        raise LogFinalizedError("Un journal finalisé ne peut pas être rouvert.")


def merge_log(db: Session, date_key: str, fields: Dict[str, Any]) -> DailyLog:
    """Crée ou fusionne le journal du jour. Ne détruit jamais les champs non fournis."""
    unknown = set(fields) - MERGEABLE_FIELDS
    if unknown:
        raise ValueError(f"Champs inconnus : {sorted(unknown)}")

    try:
        log = db.get(DailyLog, date_key)
        _check_latch(log, "finalized", fields.get("finalized", True))

        if log is None:
            log = DailyLog(date_key=date_key, focus="", finalized=False, attendance={})
            db.add(log)

        for field, value in fields.items():
            if field == "attendance":
                # Nouvelle instance de dict : la colonne JSON détecte le changement
                merged = dict(log.attendance or {})
                merged.update(value)
                log.attendance = merged
            else:
                setattr(log, field, value)

        db.commit()
        db.refresh(log)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Enregistrement du journal %s impossible : %s", date_key, exc)
        raise StoreWriteError(str(exc)) from exc

    logger.info("Journal %s enregistré (%d élèves marqués)", date_key, len(log.attendance or {}))
    return log


def update_field(db: Session, date_key: str, path: str, value: Any) -> DailyLog:
    """
    Met à jour un seul champ par chemin pointé. Utilisé pour les corrections
    élève par élève afin de ne pas écraser une écriture concurrente du document.
    """
    field, _, sub_key = path.partition(".")
    if field not in MERGEABLE_FIELDS or (sub_key and field != "attendance"):
        raise ValueError(f"Chemin invalide : {path}")

    try:
        log = db.get(DailyLog, date_key)
        if log is None:
            raise LogNotFoundError(f"Journal {date_key} introuvable.")
        _check_latch(log, field, value)

        if sub_key:
            attendance = dict(log.attendance or {})
            attendance[sub_key] = value
            log.attendance = attendance
        elif field == "attendance":
            log.attendance = dict(value)
        else:
            setattr(log, field, value)

        db.commit()
        db.refresh(log)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Mise à jour %s du journal %s impossible : %s", path, date_key, exc)
        raise StoreWriteError(str(exc)) from exc

    logger.debug("Journal %s : %s mis à jour", date_key, path)
    return log
