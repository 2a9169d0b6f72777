"""
Dates calendaires locales et clés de journal (YYYY-MM-DD).

La clé est le seul format d'échange à préserver exactement : triable
lexicographiquement et filtrable par préfixe YYYY-MM pour un mois.
"""

from datetime import date, datetime
from typing import Union
from zoneinfo import ZoneInfo

from app.config import settings

DATE_KEY_FORMAT = "%Y-%m-%d"


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def local_now() -> datetime:
    return datetime.now(local_zone())


def local_today() -> date:
    return local_now().date()


def to_local_date(value: Union[date, datetime]) -> date:
    """
    Ramène un horodatage à une date calendaire locale.
    Un datetime naïf est considéré comme déjà exprimé en heure locale.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_zone())
        return value.date()
    return value


def date_key(value: Union[date, datetime, None] = None) -> str:
    """Clé du journal pour une date (aujourd'hui par défaut)."""
    return to_local_date(value if value is not None else local_today()).strftime(DATE_KEY_FORMAT)


def parse_date_key(key: str) -> date:
    return datetime.strptime(key, DATE_KEY_FORMAT).date()


def month_prefix(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"
