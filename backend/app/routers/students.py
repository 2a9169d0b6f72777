"""
Router pour le roster des élèves.
Listage des actifs (GET /api/v1/students), détail, création, mise à jour
et suppression logique (DELETE → is_active=False).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import StoreReadError
from app.schemas.student import StudentCreate, StudentResponse, StudentUpdate
from app.services import roster_store

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


@router.get("", response_model=List[StudentResponse], summary="Lister les élèves actifs")
def list_students(db: Session = Depends(get_db)):
    """
    Retourne les élèves actifs triés alphabétiquement (insensible à la casse).
    Une lecture impossible renvoie une liste vide.
    """
    try:
        return roster_store.get_active_students(db)
    except StoreReadError:
        return []


@router.get("/{student_id}", response_model=StudentResponse, summary="Détail d'un élève")
def get_student(student_id: str, db: Session = Depends(get_db)):
    """Une lecture impossible est traitée comme un élève introuvable (404)."""
    try:
        student = roster_store.get_student(db, student_id)
    except StoreReadError:
        student = None
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève")
def create_student(data: StudentCreate, db: Session = Depends(get_db)):
    """Crée un élève actif. L'id est attribué par le store."""
    student_id = roster_store.upsert_student(db, data.model_dump())
    return roster_store.get_student(db, student_id)


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(student_id: str, data: StudentUpdate, db: Session = Depends(get_db)):
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    if roster_store.get_student(db, student_id) is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")

    roster_store.upsert_student(db, data.model_dump(exclude_unset=True), student_id=student_id)
    return roster_store.get_student(db, student_id)


@router.delete("/{student_id}", status_code=204, summary="Retirer un élève")
def delete_student(student_id: str, db: Session = Depends(get_db)):
    """
    Suppression logique : l'élève disparaît du roster et de la file du jour,
    son historique de présence est conservé.
    """
    if not roster_store.soft_delete_student(db, student_id):
        raise HTTPException(status_code=404, detail="Élève introuvable.")
