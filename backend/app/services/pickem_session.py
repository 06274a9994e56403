"""
Pick'em Session - one user's predictions for one tournament.

Holds winners and scores per tab, enforces the score entry rules, refuses
edits once the tournament is locked, resolves bracket labels from the
current picks, and persists each tab through an injected saver behind a
SaveDebouncer.

Score rules:
- Swiss series are best of 5: each score is at most 3, and when one side
  has 3 the other is at most 2.
- Playoff series are best of 7: each score is at most 4.
- A non-tied pair of scores also sets the winner pick.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from backend.app.core.errors import PickemError, PredictionLockedError
from backend.app.engine.slot_resolver import resolve_bracket_labels
from backend.app.models.enums import Side, Tab
from backend.app.schemas.bracket_schema import Bracket, Tournament
from backend.app.schemas.pickem_schema import PickEntry
from backend.app.services.save_debouncer import SaveDebouncer

logger = logging.getLogger(__name__)

SWISS_MAX_SCORE = 3
PLAYOFF_MAX_SCORE = 4

Saver = Callable[[str, Tab, Sequence[PickEntry]], Awaitable[object]]


def _to_score(value) -> Optional[int]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return max(0, math.floor(value))


def clamp_scores(tab: Tab, score_a, score_b) -> Tuple[Optional[int], Optional[int]]:
    a, b = _to_score(score_a), _to_score(score_b)
    if tab == Tab.SWISS:
        a = min(SWISS_MAX_SCORE, a) if a is not None else None
        b = min(SWISS_MAX_SCORE, b) if b is not None else None
        if a == SWISS_MAX_SCORE and b is not None:
            b = min(SWISS_MAX_SCORE - 1, b)
        if b == SWISS_MAX_SCORE and a is not None:
            a = min(SWISS_MAX_SCORE - 1, a)
    else:
        a = min(PLAYOFF_MAX_SCORE, a) if a is not None else None
        b = min(PLAYOFF_MAX_SCORE, b) if b is not None else None
    return a, b


def tab_bracket(tournament: Tournament, tab: Tab) -> Optional[Bracket]:
    return tournament.swiss_bracket if tab == Tab.SWISS else tournament.bracket


def tab_match_ids(tournament: Tournament, tab: Tab) -> List[str]:
    """Match ids shown on a tab: group matches for Swiss when present, else the bracket."""
    if tab == Tab.SWISS and tournament.swiss_groups:
        return [match.id for group in tournament.swiss_groups for match in group.matches]
    bracket = tab_bracket(tournament, tab)
    return [match.id for match in bracket.all_matches()] if bracket else []


class PickemSession:
    def __init__(
        self,
        tournament: Tournament,
        saver: Saver,
        lock_date: Optional[datetime] = None,
        debouncer: Optional[SaveDebouncer] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.tournament = tournament
        self.saver = saver
        self.lock_date = lock_date
        self.debouncer = debouncer or SaveDebouncer()
        self.clock = clock
        self.status = "idle"  # idle | saving | saved | locked | error

        self.winners: Dict[Tuple[Tab, str], Side] = {}
        self.scores: Dict[Tuple[Tab, str], Tuple[Optional[int], Optional[int]]] = {}

    @property
    def is_locked(self) -> bool:
        return self.lock_date is not None and self.clock() >= self.lock_date

    # --- Hydration ---

    def load(self, tab: Tab, picks: Sequence[PickEntry]):
        """Replace a tab's local state with stored picks. Does not trigger a save."""
        for key in [k for k in self.winners if k[0] == tab]:
            del self.winners[key]
        for key in [k for k in self.scores if k[0] == tab]:
            del self.scores[key]

        for pick in picks:
            if pick.score_a is not None or pick.score_b is not None:
                self.scores[(tab, pick.match_id)] = (pick.score_a, pick.score_b)
            if pick.winner_side:
                self.winners[(tab, pick.match_id)] = Side(pick.winner_side)

    # --- Edits ---

    def pick_winner(self, tab: Tab, match_id: str, side: Side) -> bool:
        if self.is_locked:
            self.status = "locked"
            return False
        self.winners[(tab, match_id)] = Side(side)
        self._schedule_save(tab)
        return True

    def set_score(self, tab: Tab, match_id: str, side: Side, score) -> bool:
        if self.is_locked:
            self.status = "locked"
            return False

        key = (tab, match_id)
        current_a, current_b = self.scores.get(key, (None, None))
        if Side(side) is Side.A:
            a, b = clamp_scores(tab, score, current_b)
        else:
            a, b = clamp_scores(tab, current_a, score)
        self.scores[key] = (a, b)

        if a is not None and b is not None and a != b:
            self.winners[key] = Side.A if a > b else Side.B
        self._schedule_save(tab)
        return True

    # --- Views ---

    def picks_for(self, tab: Tab) -> List[PickEntry]:
        """Payload for a tab: one entry per visible match, empty ones included."""
        entries = []
        for match_id in tab_match_ids(self.tournament, tab):
            score_a, score_b = self.scores.get((tab, match_id), (None, None))
            entries.append(PickEntry(
                match_id=match_id,
                winner_side=self.winners.get((tab, match_id)),
                score_a=score_a,
                score_b=score_b,
            ))
        return entries

    def resolved_labels(self, tab: Tab) -> Dict[str, Tuple[str, str]]:
        bracket = tab_bracket(self.tournament, tab)
        if bracket is None:
            return {}
        predictions = {match_id: side for (t, match_id), side in self.winners.items() if t == tab}
        return resolve_bracket_labels(bracket, predictions)

    # --- Persistence ---

    def _schedule_save(self, tab: Tab):
        self.debouncer.schedule((self.tournament.id, tab), lambda: self._save(tab))

    async def _save(self, tab: Tab):
        self.status = "saving"
        try:
            await self.saver(self.tournament.id, tab, self.picks_for(tab))
        except PredictionLockedError as e:
            self.status = "locked"
            self.lock_date = e.lock_date
            logger.info("Save refused, %s is locked", self.tournament.id)
            return
        except PickemError as e:
            self.status = "error"
            logger.warning("Saving %s/%s failed: %s", self.tournament.id, tab, e)
            return
        self.status = "saved"

    async def flush(self):
        await self.debouncer.flush()
