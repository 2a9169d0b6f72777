"""
Schémas Pydantic pour les élèves du dojo.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

BELTS = ("White", "Yellow", "Green", "Blue", "Red", "Black")


class StudentCreate(BaseModel):
    """Schéma de création d'un élève (POST /students)."""
    name: str
    age: int = Field(default=0, ge=0)
    phone_number: str = ""
    belt: str = "White"   # Texte libre en pratique, BELTS pour l'interface

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()


class StudentUpdate(BaseModel):
    """Schéma de mise à jour partielle d'un élève (PUT /students/{id})."""
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    phone_number: Optional[str] = None
    belt: Optional[str] = None

    # Un champ absent n'est pas modifié ; un null explicite est refusé (colonnes non nulles)
    @field_validator("name", "age", "phone_number", "belt")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Valeur nulle interdite : omettre le champ pour ne pas le modifier.")
        return v

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip() if v is not None else v


class StudentResponse(BaseModel):
    """
    Instantané d'un élève. Figé : la session et la réconciliation
    produisent des copies corrigées (model_copy) au lieu de muter.
    """
    id: str
    name: str
    age: int = 0
    phone_number: str = ""
    belt: str = "White"
    is_active: bool = True
    total_classes: int = 0
    current_streak: int = 0
    last_attended: int = 0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}
