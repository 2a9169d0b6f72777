"""
Schémas Pydantic pour les journaux quotidiens (calendrier et vue détail).

Note : on importe datetime en tant que module (dt) pour éviter le conflit de nommage
entre le champ `date` et le type `datetime.date` dans Pydantic v2.
"""

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel

from app.schemas.attendance import AttendanceStatus

DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class AttendanceCounts(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0


class DailyLogSummary(BaseModel):
    """Case du calendrier : un jour avec cours."""
    date_key: str
    date: Optional[dt.datetime] = None
    focus: str = ""
    finalized: bool = False
    marked_count: int
    counts: AttendanceCounts


class DayDetailRow(BaseModel):
    """Ligne de la vue détail : un élève actif et son statut (ABSENT par défaut)."""
    student_id: str
    name: str
    belt: str
    status: AttendanceStatus
    is_marked: bool


class DayDetail(BaseModel):
    date_key: str
    date: Optional[dt.datetime] = None
    focus: str = ""
    finalized: bool = False
    attendance: Dict[str, AttendanceStatus]
    rows: List[DayDetailRow]
    counts: AttendanceCounts


class FocusUpdate(BaseModel):
    """Corps de PUT /logs/{date_key}/focus."""
    focus: str
