"""
Taxonomie des erreurs métier.

- StoreReadError / StoreWriteError : échec d'accès aux stores (réseau, permissions, BDD).
  Les stores enveloppent les SQLAlchemyError dans ces deux classes.
- SessionError : opération refusée par la logique de présence (409 côté API).
- Une lecture sans résultat (journal absent, élève inconnu) n'est PAS une erreur : None.
"""


class StoreError(Exception):
    """Échec d'un store (lecture ou écriture)."""


class StoreReadError(StoreError):
    """Lecture impossible : récupérée localement en résultat vide par les appelants."""


class StoreWriteError(StoreError):
    """Écriture impossible : signalée à l'utilisateur, l'état local n'est pas annulé."""


class SessionError(ValueError):
    """Opération refusée par la session de présence ou le journal du jour."""


class NotQueueHeadError(SessionError):
    """L'élève marqué n'est pas la carte active (tête de file)."""


class LogFinalizedError(SessionError):
    """Le journal du jour est finalisé : plus aucune écriture n'est acceptée."""


class LogNotFoundError(SessionError):
    """Mise à jour d'un champ sur un journal inexistant."""
