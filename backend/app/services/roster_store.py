"""
Store du roster (table students).

Vocabulaire de store documentaire : lecture de tous les actifs triés, lecture
par id, upsert, suppression logique, mise à jour d'un champ en batch atomique.
Les erreurs SQLAlchemy sont enveloppées dans StoreReadError / StoreWriteError.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import StoreReadError, StoreWriteError
from app.models.student import Student, new_student_id

logger = logging.getLogger(__name__)

# Champs modifiables par upsert (le reste est géré par la réconciliation)
EDITABLE_FIELDS = {"name", "age", "phone_number", "belt", "is_active", "total_classes", "last_attended"}


def get_active_students(db: Session) -> List[Student]:
    """
    Élèves actifs dans l'ordre canonique de la file :
    nom alphabétique insensible à la casse, égalités départagées par id.
    """
    try:
        return list(db.execute(
            select(Student)
            .where(Student.is_active.is_(True))
            .order_by(func.lower(Student.name), Student.id)
        ).scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Lecture du roster impossible : %s", exc)
        raise StoreReadError(str(exc)) from exc


def get_all_students(db: Session) -> List[Student]:
    """Tous les élèves, anciens inclus (vues historiques)."""
    try:
        return list(db.execute(
            select(Student).order_by(func.lower(Student.name), Student.id)
        ).scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Lecture du roster impossible : %s", exc)
        raise StoreReadError(str(exc)) from exc


def get_student(db: Session, student_id: str) -> Optional[Student]:
    """Retourne un élève par son id, ou None s'il n'existe pas."""
    try:
        return db.get(Student, student_id)
    except SQLAlchemyError as exc:
        logger.error("Lecture de l'élève %s impossible : %s", student_id, exc)
        raise StoreReadError(str(exc)) from exc


def upsert_student(db: Session, fields: Dict[str, Any], student_id: Optional[str] = None) -> str:
    """
    Crée l'élève (id attribué par le store) ou met à jour les champs fournis.
    Retourne l'id de l'élève.
    """
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Champs non modifiables : {sorted(unknown)}")

    try:
        student = db.get(Student, student_id) if student_id else None
        if student is None:
            student = Student(id=student_id or new_student_id(), **fields)
            db.add(student)
        else:
            for field, value in fields.items():
                setattr(student, field, value)
        db.commit()
        db.refresh(student)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Enregistrement de l'élève impossible : %s", exc)
        raise StoreWriteError(str(exc)) from exc

    logger.info("Élève enregistré : %s (%s)", student.name, student.id)
    return student.id


def soft_delete_student(db: Session, student_id: str) -> bool:
    """
    Suppression logique (is_active → False). L'historique de présence est conservé.
    Retourne True si désactivé, False si non trouvé.
    """
    try:
        student = db.get(Student, student_id)
        if student is None:
            return False
        student.is_active = False
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Suppression de l'élève %s impossible : %s", student_id, exc)
        raise StoreWriteError(str(exc)) from exc

    logger.info("Élève désactivé : %s", student_id)
    return True


def batch_update_field(db: Session, updates: Sequence[Tuple[str, str, Any]]) -> int:
    """
    Applique une liste de (id, champ, valeur) en une seule transaction (tout ou rien).
    Les ids inconnus sont ignorés. Retourne le nombre d'élèves modifiés.
    """
    applied = 0
    try:
        for student_id, field, value in updates:
            if not hasattr(Student, field):
                raise ValueError(f"Champ inconnu : {field}")
            student = db.get(Student, student_id)
            if student is None:
                logger.debug("Batch : élève %s introuvable, ignoré", student_id)
                continue
            setattr(student, field, value)
            applied += 1
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreWriteError(str(exc)) from exc

    return applied
