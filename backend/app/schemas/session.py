"""
Schémas Pydantic pour la session de présence du jour (écran de swipe).
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from app.schemas.attendance import AttendanceStatus
from app.schemas.daily_log import AttendanceCounts
from app.schemas.student import StudentResponse


class MarkRequest(BaseModel):
    """Un swipe : la carte active reçoit un statut."""
    student_id: str
    status: AttendanceStatus


class SessionStateResponse(BaseModel):
    """Instantané de la session renvoyé après chaque transition."""
    date_key: str
    phase: str                      # LOADING, ACTIVE, AWAITING_FINALIZATION, FINALIZED
    is_loading: bool
    queue: List[StudentResponse]    # queue[0] = carte active
    marked: Dict[str, AttendanceStatus]
    undo_depth: int
    total_count: int
    progress: float
    counts: AttendanceCounts
    is_attendance_finalized: bool
    error: Optional[str] = None
