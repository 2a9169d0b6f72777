"""
Préférences de l'instructeur (écran profil) : thème et rappels.
Une seule ligne (id=1), l'application n'a qu'un instructeur.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.database import Base

SETTINGS_ROW_ID = 1


class InstructorSettings(Base):
    __tablename__ = "instructor_settings"

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    display_name = Column(String(150), nullable=True)
    notification_email = Column(String(255), nullable=True)   # Destinataire des rappels
    theme = Column(String(10), default="SYSTEM")               # SYSTEM, LIGHT, DARK
    morning_reminder = Column(Boolean, default=True)
    evening_reminder = Column(Boolean, default=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
