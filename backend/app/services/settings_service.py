"""
Préférences de l'instructeur (thème, rappels du matin et du soir).
"""

import logging

from sqlalchemy.orm import Session

from app.models.instructor_settings import SETTINGS_ROW_ID, InstructorSettings
from app.schemas.settings import SettingsResponse, SettingsUpdate

logger = logging.getLogger(__name__)


def _get_or_create(db: Session) -> InstructorSettings:
    prefs = db.get(InstructorSettings, SETTINGS_ROW_ID)
    if prefs is None:
        prefs = InstructorSettings(
            id=SETTINGS_ROW_ID,
            theme="SYSTEM",
            morning_reminder=True,
            evening_reminder=True,
        )
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
        logger.info("Préférences initialisées avec les valeurs par défaut.")
    return prefs


def get_settings(db: Session) -> SettingsResponse:
    """Retourne les préférences, créées avec les valeurs par défaut à la première lecture."""
    return SettingsResponse.model_validate(_get_or_create(db))


def update_settings(db: Session, data: SettingsUpdate) -> SettingsResponse:
    """Met à jour les champs fournis. Les champs absents ne sont pas modifiés."""
    prefs = _get_or_create(db)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(prefs, field, value)
    db.commit()
    db.refresh(prefs)
    return SettingsResponse.model_validate(prefs)
