"""
Moteur de la session de présence du jour (écran de swipe).

Cycle de vie par jour et par appareil :
    LOADING → ACTIVE (file non vide) → AWAITING_FINALIZATION (file vide) → FINALIZED
Undo ramène en ACTIVE. FINALIZED est terminal et vient du store (vue détail).

Modèle "cache local faisant foi + envoi asynchrone au mieux" :
- mark / undo modifient l'état en mémoire de façon synchrone
- quand la file se vide, commit() est lancé en arrière-plan (fire-and-forget)
- un commit raté laisse l'état local intact et remplit `error`, sans réessai
- un marquage non encore envoyé est perdu si le processus s'arrête avant le commit
  (durabilité "au plus une fois", assumée)

L'état est un instantané figé (SessionState), remplacé à chaque transition.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from app.config import settings
from app.database import SessionLocal
from app.exceptions import (
    LogFinalizedError,
    NotQueueHeadError,
    SessionError,
    StoreReadError,
    StoreWriteError,
)
from app.schemas.attendance import AttendanceStatus
from app.schemas.daily_log import AttendanceCounts
from app.schemas.session import SessionStateResponse
from app.schemas.student import StudentResponse
from app.services import log_store, roster_store
from app.services.dates import date_key, local_now, local_today
from app.services.streak_service import reconcile_streaks

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    LOADING = "LOADING"
    ACTIVE = "ACTIVE"
    AWAITING_FINALIZATION = "AWAITING_FINALIZATION"
    FINALIZED = "FINALIZED"


UndoEntry = Tuple[StudentResponse, AttendanceStatus]


@dataclass(frozen=True)
class SessionState:
    date_key: str
    is_loading: bool = True
    roster: Tuple[StudentResponse, ...] = ()
    queue: Tuple[StudentResponse, ...] = ()
    marked: Mapping[str, AttendanceStatus] = field(default_factory=lambda: MappingProxyType({}))
    undo_stack: Tuple[UndoEntry, ...] = ()
    is_finalized: bool = False
    focus: str = ""
    error: Optional[str] = None

    @property
    def total_count(self) -> int:
        return len(self.roster)

    @property
    def progress(self) -> float:
        if self.total_count == 0:
            return 0.0
        return (self.total_count - len(self.queue)) / self.total_count

    @property
    def phase(self) -> SessionPhase:
        if self.is_loading:
            return SessionPhase.LOADING
        if self.is_finalized:
            return SessionPhase.FINALIZED
        if self.queue:
            return SessionPhase.ACTIVE
        return SessionPhase.AWAITING_FINALIZATION

    @property
    def counts(self) -> AttendanceCounts:
        values = list(self.marked.values())
        return AttendanceCounts(
            present=values.count(AttendanceStatus.PRESENT),
            absent=values.count(AttendanceStatus.ABSENT),
            late=values.count(AttendanceStatus.LATE),
        )


def _fire_and_forget(task: Callable[[], object]) -> None:
    threading.Thread(target=task, name="attendance-commit", daemon=True).start()


def _snapshot_roster(students, errors: List[str]) -> List[StudentResponse]:
    """Instantanés du roster ; une fiche invalide est écartée de la file et signalée."""
    roster = []
    for student in students:
        try:
            roster.append(StudentResponse.model_validate(student))
        except ValidationError as exc:
            student_id = getattr(student, "id", None)
            logger.error("Fiche élève %s invalide, ignorée : %s", student_id, exc)
            errors.append(f"Fiche élève {student_id} invalide, ignorée")
    return roster


def _parse_marks(raw: Optional[Mapping]) -> Dict[str, AttendanceStatus]:
    marks = {}
    for student_id, value in (raw or {}).items():
        try:
            marks[student_id] = AttendanceStatus(value)
        except ValueError:
            logger.warning("Statut inconnu ignoré pour %s : %r", student_id, value)
    return marks


class AttendanceSession:
    """Session de présence d'un appareil pour un jour donné."""

    def __init__(
        self,
        session_factory: Callable = SessionLocal,
        today: Optional[date] = None,
        focus: Optional[str] = None,
    ):
        self._session_factory = session_factory
        self._today = today or local_today()
        self._focus = focus or settings.DEFAULT_FOCUS
        self._state = SessionState(date_key=date_key(self._today))
        # Sérialise les transitions (requêtes et commit en tâche de fond), jamais tenu pendant une I/O
        self._lock = threading.RLock()

    @property
    def today(self) -> date:
        return self._today

    @property
    def state(self) -> SessionState:
        return self._state

    def _replace(self, **changes) -> SessionState:
        with self._lock:
            self._state = replace(self._state, **changes)
            return self._state

    # --- Chargement ---

    def load(self) -> SessionState:
        """
        Reconstruit la session depuis le store :
        1. Roster actif (ordre canonique)
        2. Historique complet → réconciliation des séries (batch de corrections)
        3. Journal du jour → map des marqués, file = roster - marqués
        Toute erreur de lecture donne un résultat vide et un message dans `error`.
        """
        self._replace(is_loading=True, error=None)
        errors: List[str] = []
        key = self._state.date_key

        db = self._session_factory()
        try:
            try:
                students = roster_store.get_active_students(db)
            except StoreReadError as exc:
                errors.append(f"Roster indisponible : {exc}")
                students = []
            roster = _snapshot_roster(students, errors)

            try:
                history = log_store.get_all_logs(db)
            except StoreReadError as exc:
                # Pas de réconciliation sur un historique vide : les séries seraient remises à zéro
                errors.append(f"Historique indisponible : {exc}")
                history = None

            if history is not None and roster:
                result = reconcile_streaks(db, roster, history, self._today)
                roster = result.students
                if result.error:
                    errors.append(result.error)

            try:
                today_log = log_store.get_log(db, key)
            except StoreReadError as exc:
                errors.append(f"Journal du jour indisponible : {exc}")
                today_log = None
        finally:
            db.close()

        marked = _parse_marks(today_log.attendance if today_log else None)
        queue = tuple(s for s in roster if s.id not in marked)
        by_id = {s.id: s for s in roster}

        with self._lock:
            # Undo reprenable : seules les actions encore persistées à l'identique survivent
            undo_stack = tuple(
                (by_id[student.id], status)
                for student, status in self._state.undo_stack
                if student.id in by_id and marked.get(student.id) == status
            )
            state = self._replace(
                is_loading=False,
                roster=tuple(roster),
                queue=queue,
                marked=MappingProxyType(marked),
                undo_stack=undo_stack,
                is_finalized=bool(today_log.finalized) if today_log else False,
                focus=(today_log.focus or "") if today_log else "",
                error="; ".join(errors) or None,
            )
        logger.info(
            "Session %s chargée : %d élèves, %d restants, finalisée=%s",
            key, state.total_count, len(state.queue), state.is_finalized,
        )
        return state

    # --- Transitions ---

    def mark(
        self,
        student_id: str,
        status: AttendanceStatus,
        dispatch: Optional[Callable[[Callable[[], object]], object]] = None,
    ) -> SessionState:
        """
        Marque la carte active. Si la file se vide, le commit est confié à `dispatch`
        (tâche de fond) et l'état passe immédiatement en AWAITING_FINALIZATION.
        """
        status = AttendanceStatus(status)
        with self._lock:
            state = self._state
            if state.is_loading:
                raise SessionError("La session n'est pas encore chargée.")
            if state.is_finalized:
                logger.warning("Marquage refusé : journal %s finalisé", state.date_key)
                raise LogFinalizedError(f"Le journal du {state.date_key} est finalisé.")
            if not state.queue or state.queue[0].id != student_id:
                raise NotQueueHeadError("Seule la carte active peut être marquée.")

            student = state.queue[0]
            marked = dict(state.marked)
            marked[student.id] = status

            new_state = self._replace(
                queue=state.queue[1:],
                marked=MappingProxyType(marked),
                undo_stack=state.undo_stack + ((student, status),),
            )

        if not new_state.queue:
            logger.debug("File vide pour %s : commit en arrière-plan", state.date_key)
            (dispatch or _fire_and_forget)(self.commit)
        return new_state

    def undo(self) -> SessionState:
        """Annule la dernière action : l'élève revient en tête de file. Sans effet si rien à annuler."""
        with self._lock:
            state = self._state
            if not state.undo_stack:
                return state
            if state.is_finalized:
                logger.debug("Undo ignoré : journal %s finalisé", state.date_key)
                return state

            student, _ = state.undo_stack[-1]
            marked = dict(state.marked)
            marked.pop(student.id, None)

            # Une écriture déjà envoyée n'est pas retirée : le prochain commit l'écrase
            return self._replace(
                queue=(student,) + state.queue,
                marked=MappingProxyType(marked),
                undo_stack=state.undo_stack[:-1],
            )

    def commit(self) -> Optional[str]:
        """
        Enregistre la map complète du jour (fusion) puis corrige les séries des élèves marqués.
        Retourne le message d'erreur éventuel (aussi exposé dans state.error).
        """
        with self._lock:
            state = self._state
        if state.is_finalized:
            logger.warning("Commit ignoré : journal %s finalisé", state.date_key)
            return None
        if not state.marked:
            logger.debug("Commit ignoré : aucun élève marqué pour %s", state.date_key)
            return None

        marked = dict(state.marked)
        fields = {
            "date": local_now(),
            "attendance": {sid: status.value for sid, status in marked.items()},
        }
        if not state.focus:
            fields["focus"] = self._focus

        db = self._session_factory()
        try:
            try:
                log = log_store.merge_log(db, state.date_key, fields)
            except LogFinalizedError as exc:
                self._replace(is_finalized=True, error=str(exc))
                return str(exc)
            except StoreWriteError as exc:
                message = f"Échec de l'enregistrement : {exc}"
                logger.error("Commit du %s : %s", state.date_key, exc)
                self._replace(error=message)
                return message

            self._replace(focus=log.focus or "", error=None)

            try:
                history = log_store.get_all_logs(db)
            except StoreReadError as exc:
                message = f"Historique indisponible, séries non recalculées : {exc}"
                self._replace(error=message)
                return message

            affected = [s for s in state.roster if s.id in marked]
            result = reconcile_streaks(db, affected, history, self._today)
        finally:
            db.close()

        corrected = {s.id: s for s in result.students}
        with self._lock:
            # Relu sous verrou : un mark ou un undo a pu passer pendant l'écriture
            self._replace(
                roster=tuple(corrected.get(s.id, s) for s in self._state.roster),
                error=result.error,
            )
        logger.info("Présences du %s enregistrées (%d élèves)", state.date_key, len(marked))
        return result.error


def state_to_response(state: SessionState) -> SessionStateResponse:
    return SessionStateResponse(
        date_key=state.date_key,
        phase=state.phase.value,
        is_loading=state.is_loading,
        queue=list(state.queue),
        marked=dict(state.marked),
        undo_depth=len(state.undo_stack),
        total_count=state.total_count,
        progress=state.progress,
        counts=state.counts,
        is_attendance_finalized=state.is_finalized,
        error=state.error,
    )


# --- Registre : une session par appareil et par jour ---

_sessions: Dict[str, AttendanceSession] = {}
_sessions_lock = threading.Lock()


def get_session(device_id: str = "", today: Optional[date] = None) -> AttendanceSession:
    """Session courante de l'appareil ; un nouveau jour démarre une nouvelle session."""
    today = today or local_today()
    with _sessions_lock:
        session = _sessions.get(device_id)
        if session is None or session.today != today:
            session = AttendanceSession(today=today)
            _sessions[device_id] = session
        return session


def drop_session(device_id: str = "") -> None:
    with _sessions_lock:
        _sessions.pop(device_id, None)


def clear_sessions() -> None:
    with _sessions_lock:
        _sessions.clear()
