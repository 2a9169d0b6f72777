"""
Router pour les préférences de l'instructeur (écran profil).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.settings import SettingsResponse, SettingsUpdate
from app.services import settings_service

router = APIRouter(prefix="/api/v1/settings", tags=["Préférences"])


@router.get("", response_model=SettingsResponse, summary="Lire les préférences")
def get_settings(db: Session = Depends(get_db)):
    return settings_service.get_settings(db)


@router.put("", response_model=SettingsResponse, summary="Modifier les préférences")
def update_settings(data: SettingsUpdate, db: Session = Depends(get_db)):
    """Thème, rappels du matin et du soir, email de notification. Seuls les champs fournis changent."""
    return settings_service.update_settings(db, data)
