"""
Error taxonomy shared by the engine, the services and the HTTP layer.

Parse absence is never an error (extraction returns None / empty values).
Only transport, lock, persistence and graph-construction problems raise.
"""

from datetime import datetime
from typing import Optional


class PickemError(Exception):
    """Base class for all domain errors."""


class WikiTransportError(PickemError):
    """The wiki API could not be reached or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PredictionLockedError(PickemError):
    """Predictions for a tournament are closed (now >= lock instant)."""

    def __init__(self, tournament_id: str, lock_date: datetime):
        super().__init__(f"Predictions for {tournament_id} are locked since {lock_date.isoformat()}")
        self.tournament_id = tournament_id
        self.lock_date = lock_date


class PersistenceError(PickemError):
    """A multi-statement write failed and was rolled back."""


class BracketGraphError(PickemError):
    """A bracket references a missing match or contains a cycle."""


class ApiClientError(PickemError):
    """The pick'em API answered a client call with an unexpected status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
