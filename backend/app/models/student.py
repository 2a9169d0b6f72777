"""
Modèle SQLAlchemy pour la table students (le roster du dojo).
Jamais supprimé physiquement : is_active=False marque un départ.
"""

import uuid
from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, String, func

from app.database import Base


def new_student_id() -> str:
    return str(uuid.uuid4())


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=new_student_id)
    name = Column(String(150), nullable=False)
    age = Column(Integer, default=0)
    phone_number = Column(String(30), default="")
    belt = Column(String(30), default="White")            # White, Yellow, Green, Blue, Red, Black
    is_active = Column(Boolean, default=True, index=True)

    # Statistiques rapides (cache : current_streak est recalculé depuis l'historique)
    total_classes = Column(Integer, default=0)
    current_streak = Column(Integer, default=0)
    last_attended = Column(BigInteger, default=0)         # epoch millis, 0 = jamais

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
