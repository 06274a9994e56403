import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

class ResultEvents:
    """In-process bus fired after authoritative results change."""

    def __init__(self):
        self._on_changed_listeners: List[Callable] = []

    def subscribe_changed(self, callback: Callable):
        if callback not in self._on_changed_listeners:
            self._on_changed_listeners.append(callback)

    async def notify_changed(self, db, tournament_id: str, changes: int):
        # Results are already committed when listeners run
        for listener in self._on_changed_listeners:
            try:
                await listener(db, tournament_id, changes)
            except Exception:
                logger.exception("Result listener failed for %s", tournament_id)

result_events = ResultEvents()
