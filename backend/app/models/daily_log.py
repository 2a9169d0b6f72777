"""
Modèle SQLAlchemy pour les journaux de présence quotidiens.

- date_key : date calendaire locale YYYY-MM-DD, identité naturelle du journal
  (triable lexicographiquement, filtrable par préfixe YYYY-MM pour un mois)
- attendance : map JSON student_id → PRESENT / ABSENT / LATE
- finalized : verrou à sens unique (False → True uniquement)
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text

from app.database import Base


class DailyLog(Base):
    __tablename__ = "daily_logs"

    date_key = Column(String(10), primary_key=True)
    date = Column(DateTime(timezone=True), nullable=True)   # Horodatage du dernier enregistrement
    focus = Column(Text, default="")
    finalized = Column(Boolean, default=False)
    attendance = Column(JSON, default=dict)
