"""
Statuts de présence et table de rotation "tap-to-cycle" (vue détail d'un jour).
"""

from enum import Enum


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"


# Rotation fixe utilisée par la correction manuelle : un tap = statut suivant
NEXT_STATUS = {
    AttendanceStatus.PRESENT: AttendanceStatus.ABSENT,
    AttendanceStatus.ABSENT: AttendanceStatus.LATE,
    AttendanceStatus.LATE: AttendanceStatus.PRESENT,
}

# Statuts qui comptent comme "venu au cours" pour les séries
ATTENDED_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})


def next_status(status: AttendanceStatus) -> AttendanceStatus:
    return NEXT_STATUS[AttendanceStatus(status)]
