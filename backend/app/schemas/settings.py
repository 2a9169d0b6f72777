"""
Schémas Pydantic pour les préférences de l'instructeur.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

VALID_THEMES = {"SYSTEM", "LIGHT", "DARK"}


class SettingsUpdate(BaseModel):
    display_name: Optional[str] = None
    notification_email: Optional[EmailStr] = None
    theme: Optional[str] = None
    morning_reminder: Optional[bool] = None
    evening_reminder: Optional[bool] = None

    @field_validator("theme")
    @classmethod
    def valid_theme(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_THEMES:
            raise ValueError(f"Thème invalide. Valeurs acceptées : {VALID_THEMES}")
        return v


class SettingsResponse(BaseModel):
    display_name: Optional[str] = None
    notification_email: Optional[str] = None
    theme: str = "SYSTEM"
    morning_reminder: bool = True
    evening_reminder: bool = True

    model_config = {"from_attributes": True}
