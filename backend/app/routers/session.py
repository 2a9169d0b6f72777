"""
Router pour la session de présence du jour (écran de swipe).

Chaque appareil a sa propre session (device_id). Les marquages sont appliqués
en mémoire immédiatement ; quand la file se vide, l'enregistrement part en
tâche de fond et la réponse n'attend pas le store.
"""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from app.exceptions import SessionError
from app.schemas.session import MarkRequest, SessionStateResponse
from app.services import session_service

router = APIRouter(prefix="/api/v1/session", tags=["Session du jour"])

DeviceId = Query("", max_length=100, description="Identifiant de l'appareil")


@router.post("/load", response_model=SessionStateResponse, summary="Charger / rafraîchir la session")
def load_session(device_id: str = DeviceId):
    """
    Reconstruit la session depuis le store (entrée sur l'écran ou retour dans l'app) :
    roster actif, séries recalculées, journal du jour, file des élèves restants.
    Les erreurs de lecture sont renvoyées dans `error`, jamais en 5xx.
    """
    session = session_service.get_session(device_id)
    return session_service.state_to_response(session.load())


@router.get("", response_model=SessionStateResponse, summary="État courant de la session")
def get_session_state(device_id: str = DeviceId):
    session = session_service.get_session(device_id)
    state = session.state if not session.state.is_loading else session.load()
    return session_service.state_to_response(state)


@router.post("/mark", response_model=SessionStateResponse, summary="Marquer la carte active")
def mark_student(data: MarkRequest, background_tasks: BackgroundTasks, device_id: str = DeviceId):
    """
    Marque l'élève en tête de file (PRESENT, ABSENT ou LATE).
    - 409 si l'élève n'est pas la carte active ou si le journal est finalisé
    - Le dernier marquage déclenche l'enregistrement en arrière-plan
    """
    session = session_service.get_session(device_id)
    try:
        state = session.mark(data.student_id, data.status, dispatch=background_tasks.add_task)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session_service.state_to_response(state)


@router.post("/undo", response_model=SessionStateResponse, summary="Annuler le dernier marquage")
def undo(device_id: str = DeviceId):
    """Remet le dernier élève marqué en tête de file. Sans effet s'il n'y a rien à annuler."""
    session = session_service.get_session(device_id)
    return session_service.state_to_response(session.undo())
