"""
Tests unitaires pour le calcul et la réconciliation des séries de présence.
Couverture : ancre aujourd'hui/hier, trous, doublons, fuseau horaire,
extraction des dates depuis les journaux, idempotence de la réconciliation.
"""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from app.config import settings
from app.exceptions import StoreWriteError
from app.models.daily_log import DailyLog
from app.schemas.student import StudentResponse
from app.services.streak_service import (
    attended_dates,
    calculate_streak,
    compute_corrections,
    reconcile_streaks,
)

TODAY = date(2026, 3, 15)


# --- Helpers ---

def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def make_log(day: date, attendance: dict) -> DailyLog:
    return DailyLog(date_key=day.strftime("%Y-%m-%d"), focus="", finalized=False, attendance=attendance)


def make_student(student_id="s1", name="Akira", streak=0) -> StudentResponse:
    return StudentResponse(id=student_id, name=name, current_streak=streak)


# ============================================================
# calculate_streak
# ============================================================

def test_historique_vide():
    assert calculate_streak([], TODAY) == 0


def test_present_aujourdhui_uniquement():
    assert calculate_streak([TODAY], TODAY) == 1


def test_trois_jours_consecutifs():
    assert calculate_streak([TODAY, days_ago(1), days_ago(2)], TODAY) == 3


def test_trou_a_l_ancre_casse_la_serie():
    """Dernière venue avant-hier : ni aujourd'hui ni hier → 0."""
    assert calculate_streak([days_ago(2)], TODAY) == 0


def test_serie_vivante_pas_encore_venu_aujourdhui():
    """Pas encore venu aujourd'hui : la série part d'hier et ne retombe pas à zéro."""
    assert calculate_streak([days_ago(1), days_ago(2), days_ago(3)], TODAY) == 3


def test_trou_tronque_l_historique_ancien():
    history = [TODAY, days_ago(1), days_ago(3), days_ago(4), days_ago(5), days_ago(6)]
    assert calculate_streak(history, TODAY) == 2


def test_doublons_et_ordre_indifferents():
    history = [days_ago(1), TODAY, days_ago(1), TODAY, days_ago(2)]
    assert calculate_streak(history, TODAY) == 3


def test_deterministe():
    history = [TODAY, days_ago(1), days_ago(4)]
    assert calculate_streak(history, TODAY) == calculate_streak(list(history), TODAY)


@pytest.mark.parametrize("run", [0, 1, 4])
def test_venir_aujourdhui_prolonge_la_serie_de_la_veille(run):
    """Si la série d'hier inclut hier, venir aujourd'hui la prolonge d'un jour."""
    history = {days_ago(1 + i) for i in range(run)}
    yesterday = TODAY - timedelta(days=1)
    before = calculate_streak(history, yesterday)
    after = calculate_streak(history | {TODAY}, TODAY)
    assert after >= before
    assert after == run + 1


def test_longue_serie_sans_trou():
    history = [days_ago(i) for i in range(30)]
    assert calculate_streak(history, TODAY) == 30


def test_horodatage_utc_converti_en_date_locale(monkeypatch):
    """23h30 UTC le 14 mars = 00h30 le 15 mars à Bruxelles (UTC+1) → compte pour aujourd'hui."""
    monkeypatch.setattr(settings, "TIMEZONE", "Europe/Brussels")
    late_evening_utc = datetime(2026, 3, 14, 23, 30, tzinfo=timezone.utc)
    assert calculate_streak([late_evening_utc], TODAY) == 1


def test_horodatage_naif_considere_local():
    assert calculate_streak([datetime(2026, 3, 15, 18, 0)], TODAY) == 1


# ============================================================
# attended_dates
# ============================================================

def test_attended_dates_present_et_retard_uniquement():
    logs = [
        make_log(TODAY, {"s1": "PRESENT", "s2": "ABSENT"}),
        make_log(days_ago(1), {"s1": "LATE"}),
        make_log(days_ago(2), {"s1": "ABSENT"}),
        make_log(days_ago(3), {"s2": "PRESENT"}),
    ]
    assert sorted(attended_dates(logs, "s1")) == [days_ago(1), TODAY]
    assert attended_dates(logs, "s2") == [days_ago(3)]
    assert attended_dates(logs, "inconnu") == []


def test_attended_dates_statut_inconnu_ignore():
    logs = [make_log(TODAY, {"s1": "EXCUSED"})]
    assert attended_dates(logs, "s1") == []


# ============================================================
# Réconciliation
# ============================================================

def test_compute_corrections_seuls_les_divergents():
    logs = [make_log(TODAY, {"s1": "PRESENT", "s2": "PRESENT"}), make_log(days_ago(1), {"s1": "PRESENT"})]
    students = [make_student("s1", streak=2), make_student("s2", streak=7), make_student("s3", streak=0)]

    assert compute_corrections(students, logs, TODAY) == {"s2": 1}


def test_reconcile_corrige_en_memoire_et_ecrit_un_batch():
    logs = [make_log(TODAY, {"s1": "PRESENT"})]
    students = [make_student("s1", streak=5), make_student("s2", name="Bea", streak=0)]
    db = MagicMock()

    with patch("app.services.streak_service.roster_store.batch_update_field") as batch:
        result = reconcile_streaks(db, students, logs, TODAY)

    batch.assert_called_once_with(db, [("s1", "current_streak", 1)])
    assert result.corrected == 1
    assert result.error is None
    assert [s.current_streak for s in result.students] == [1, 0]
    # L'instantané d'origine n'est pas muté
    assert students[0].current_streak == 5
    # L'élève non corrigé est conservé tel quel
    assert result.students[1] is students[1]


def test_reconcile_idempotent():
    """Deux réconciliations successives sans changement d'historique → aucune écriture la seconde fois."""
    logs = [make_log(TODAY, {"s1": "PRESENT"}), make_log(days_ago(1), {"s1": "LATE"})]
    students = [make_student("s1", streak=0)]
    db = MagicMock()

    with patch("app.services.streak_service.roster_store.batch_update_field") as batch:
        first = reconcile_streaks(db, students, logs, TODAY)
        second = reconcile_streaks(db, first.students, logs, TODAY)

    assert batch.call_count == 1
    assert second.corrected == 0
    assert second.students[0].current_streak == 2


def test_reconcile_echec_batch_garde_les_corrections():
    """Échec du batch : erreur remontée, corrections en mémoire conservées."""
    logs = [make_log(TODAY, {"s1": "PRESENT"})]
    students = [make_student("s1", streak=9)]

    with patch("app.services.streak_service.roster_store.batch_update_field") as batch:
        batch.side_effect = StoreWriteError("permission denied")
        result = reconcile_streaks(MagicMock(), students, logs, TODAY)

    assert result.students[0].current_streak == 1
    assert "permission denied" in result.error


def test_reconcile_sans_divergence_aucune_ecriture():
    with patch("app.services.streak_service.roster_store.batch_update_field") as batch:
        result = reconcile_streaks(MagicMock(), [make_student("s1", streak=0)], [], TODAY)

    batch.assert_not_called()
    assert result.corrected == 0
