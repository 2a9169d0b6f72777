"""
Tests unitaires pour le store des journaux quotidiens.
Couverture : upsert avec fusion de la map attendance, mise à jour par chemin
pointé, verrou finalized à sens unique, requête par mois, erreurs.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import LogFinalizedError, LogNotFoundError, StoreReadError, StoreWriteError
from app.models.daily_log import DailyLog
from app.services.log_store import get_log, get_logs_for_month, merge_log, update_field


# --- Helpers ---

def make_log(attendance=None, finalized=False, focus="Kihon") -> DailyLog:
    return DailyLog(date_key="2026-03-15", focus=focus, finalized=finalized, attendance=attendance or {})


def make_db(existing=None):
    db = MagicMock()
    db.get.return_value = existing
    return db


# ============================================================
# Lecture
# ============================================================

def test_get_log_absent_retourne_none():
    assert get_log(make_db(None), "2026-03-15") is None


def test_get_log_erreur_enveloppee():
    db = MagicMock()
    db.get.side_effect = SQLAlchemyError("permission denied")

    with pytest.raises(StoreReadError):
        get_log(db, "2026-03-15")


def test_get_logs_for_month_filtre_par_prefixe():
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = []

    get_logs_for_month(db, "2026-03")

    query = str(db.execute.call_args[0][0].compile(compile_kwargs={"literal_binds": True}))
    assert "2026-03-" in query


# ============================================================
# merge_log
# ============================================================

def test_merge_cree_le_journal():
    db = make_db(None)

    log = merge_log(db, "2026-03-15", {"attendance": {"s1": "PRESENT"}, "focus": "Kata"})

    added = db.add.call_args[0][0]
    assert added is log
    assert log.date_key == "2026-03-15"
    assert log.attendance == {"s1": "PRESENT"}
    assert log.focus == "Kata"
    assert log.finalized is False
    db.commit.assert_called_once()


def test_merge_fusionne_la_map_sans_ecraser():
    existing = make_log({"s1": "PRESENT", "s2": "ABSENT"})
    db = make_db(existing)

    log = merge_log(db, "2026-03-15", {"attendance": {"s2": "LATE", "s3": "PRESENT"}})

    assert log.attendance == {"s1": "PRESENT", "s2": "LATE", "s3": "PRESENT"}
    assert log.focus == "Kihon"
    db.add.assert_not_called()


def test_merge_nouvelle_instance_de_map():
    """La colonne JSON n'est détectée modifiée que si l'objet dict change."""
    original = {"s1": "PRESENT"}
    existing = make_log(original)

    merge_log(make_db(existing), "2026-03-15", {"attendance": {"s2": "LATE"}})

    assert existing.attendance is not original
    assert original == {"s1": "PRESENT"}


def test_merge_refuse_de_rouvrir_un_journal_finalise():
    db = make_db(make_log(finalized=True))

    with pytest.raises(LogFinalizedError):
        merge_log(db, "2026-03-15", {"finalized": False})

    db.commit.assert_not_called()


def test_merge_champ_inconnu():
    with pytest.raises(ValueError):
        merge_log(make_db(None), "2026-03-15", {"couleur": "rouge"})


def test_merge_erreur_ecriture():
    db = make_db(None)
    db.commit.side_effect = SQLAlchemyError("unavailable")

    with pytest.raises(StoreWriteError):
        merge_log(db, "2026-03-15", {"attendance": {"s1": "PRESENT"}})

    db.rollback.assert_called_once()


# ============================================================
# update_field
# ============================================================

def test_update_field_chemin_pointe():
    existing = make_log({"s1": "PRESENT"})

    update_field(make_db(existing), "2026-03-15", "attendance.s2", "LATE")

    assert existing.attendance == {"s1": "PRESENT", "s2": "LATE"}


def test_update_field_simple():
    existing = make_log()

    update_field(make_db(existing), "2026-03-15", "finalized", True)

    assert existing.finalized is True


def test_update_field_journal_absent():
    with pytest.raises(LogNotFoundError):
        update_field(make_db(None), "2026-03-15", "focus", "Randori")


def test_update_field_chemin_invalide():
    with pytest.raises(ValueError):
        update_field(make_db(make_log()), "2026-03-15", "focus.sub", "x")


def test_update_field_verrou_a_sens_unique():
    db = make_db(make_log(finalized=True))

    with pytest.raises(LogFinalizedError):
        update_field(db, "2026-03-15", "finalized", False)
