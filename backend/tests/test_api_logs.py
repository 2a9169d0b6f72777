"""
Tests d'intégration API pour l'historique des journaux.
GET  /api/v1/logs                                   — calendrier
GET  /api/v1/logs/{date_key}                        — vue détail
PUT  /api/v1/logs/{date_key}/focus                  — focus du jour
POST /api/v1/logs/{date_key}/finalize               — finalisation
POST /api/v1/logs/{date_key}/students/{id}/cycle    — tap-to-cycle
"""

from unittest.mock import patch

from app.exceptions import LogFinalizedError, LogNotFoundError
from app.schemas.attendance import AttendanceStatus
from app.schemas.daily_log import AttendanceCounts, DailyLogSummary, DayDetail, DayDetailRow

KEY = "2026-03-15"


def make_detail(finalized=False) -> DayDetail:
    return DayDetail(
        date_key=KEY,
        focus="Kata",
        finalized=finalized,
        attendance={"s1": AttendanceStatus.PRESENT},
        rows=[
            DayDetailRow(student_id="s1", name="Akira", belt="White", status=AttendanceStatus.PRESENT, is_marked=True),
            DayDetailRow(student_id="s2", name="Bea", belt="Blue", status=AttendanceStatus.ABSENT, is_marked=False),
        ],
        counts=AttendanceCounts(present=1, absent=1),
    )


# ============================================================
# Calendrier
# ============================================================

def test_list_logs_par_mois(client):
    summary = DailyLogSummary(date_key=KEY, marked_count=2, counts=AttendanceCounts(present=2))
    with patch("app.routers.logs.log_service.list_logs") as mock_list:
        mock_list.return_value = [summary]

        response = client.get("/api/v1/logs", params={"month": "2026-03"})

    assert response.status_code == 200
    assert response.json()[0]["date_key"] == KEY
    assert mock_list.call_args[0][1] == "2026-03"


def test_list_logs_mois_invalide(client):
    response = client.get("/api/v1/logs", params={"month": "2026-13"})
    assert response.status_code == 422


# ============================================================
# Vue détail
# ============================================================

def test_get_day(client):
    with patch("app.routers.logs.log_service.get_day_detail") as mock_detail:
        mock_detail.return_value = make_detail()

        response = client.get(f"/api/v1/logs/{KEY}")

    assert response.status_code == 200
    rows = response.json()["rows"]
    assert rows[1]["status"] == "ABSENT"
    assert rows[1]["is_marked"] is False


def test_get_day_sans_cours(client):
    with patch("app.routers.logs.log_service.get_day_detail") as mock_detail:
        mock_detail.return_value = None

        response = client.get(f"/api/v1/logs/{KEY}")

    assert response.status_code == 404


def test_get_day_cle_invalide(client):
    response = client.get("/api/v1/logs/15-03-2026")
    assert response.status_code == 422


# ============================================================
# Finalisation
# ============================================================

def test_finalize(client):
    with patch("app.routers.logs.log_service.finalize_log") as mock_finalize, \
            patch("app.routers.logs.log_service.get_day_detail") as mock_detail:
        mock_detail.return_value = make_detail(finalized=True)

        response = client.post(f"/api/v1/logs/{KEY}/finalize")

    assert response.status_code == 200
    assert response.json()["finalized"] is True
    mock_finalize.assert_called_once()


def test_finalize_journal_absent(client):
    with patch("app.routers.logs.log_service.finalize_log") as mock_finalize:
        mock_finalize.side_effect = LogNotFoundError("Journal introuvable.")

        response = client.post(f"/api/v1/logs/{KEY}/finalize")

    assert response.status_code == 404


# ============================================================
# Focus
# ============================================================

def test_update_focus(client):
    with patch("app.routers.logs.log_service.update_focus") as mock_focus, \
            patch("app.routers.logs.log_service.get_day_detail") as mock_detail:
        mock_detail.return_value = make_detail()

        response = client.put(f"/api/v1/logs/{KEY}/focus", json={"focus": "Kata"})

    assert response.status_code == 200
    assert mock_focus.call_args[0][1:] == (KEY, "Kata")


def test_update_focus_journal_finalise(client):
    with patch("app.routers.logs.log_service.update_focus") as mock_focus:
        mock_focus.side_effect = LogFinalizedError("finalisé")

        response = client.put(f"/api/v1/logs/{KEY}/focus", json={"focus": "Kata"})

    assert response.status_code == 409


# ============================================================
# Tap-to-cycle
# ============================================================

def test_cycle_status(client):
    with patch("app.routers.logs.log_service.cycle_status") as mock_cycle:
        mock_cycle.return_value = AttendanceStatus.LATE

        response = client.post(f"/api/v1/logs/{KEY}/students/s1/cycle")

    assert response.status_code == 200
    assert response.json() == "LATE"
    assert mock_cycle.call_args[0][1:] == (KEY, "s1")


def test_cycle_status_journal_finalise(client):
    with patch("app.routers.logs.log_service.cycle_status") as mock_cycle:
        mock_cycle.side_effect = LogFinalizedError("finalisé")

        response = client.post(f"/api/v1/logs/{KEY}/students/s1/cycle")

    assert response.status_code == 409


def test_finalize_relecture_impossible(client):
    with patch("app.routers.logs.log_service.finalize_log"), \
            patch("app.routers.logs.log_service.get_day_detail") as mock_detail:
        mock_detail.return_value = None

        response = client.post(f"/api/v1/logs/{KEY}/finalize")

    assert response.status_code == 503
