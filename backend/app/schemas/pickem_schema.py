from datetime import datetime
from pydantic import EmailStr, Field
from typing import List, Optional

from backend.app.models.enums import Side, Tab
from backend.app.schemas.bracket_schema import ApiModel, FrozenApiModel

ScoreValue = Optional[int]


# --- Picks ---

class PickEntry(ApiModel):
    match_id: str = Field(min_length=1)
    winner_side: Optional[Side] = None
    score_a: ScoreValue = Field(default=None, ge=0, le=10)
    score_b: ScoreValue = Field(default=None, ge=0, le=10)

    @property
    def is_empty(self) -> bool:
        """No winner and no score: not a prediction at all."""
        return self.winner_side is None and self.score_a is None and self.score_b is None

class PicksSave(ApiModel):
    tournament_id: str = Field(min_length=1)
    tab: Tab
    picks: List[PickEntry]

class PicksSaveResponse(ApiModel):
    ok: bool = True
    saved: int

class PicksResponse(ApiModel):
    picks: List[PickEntry]

class MatchPoints(ApiModel):
    match_id: str
    points: int

class MatchPointsResponse(ApiModel):
    points_by_match: List[MatchPoints]


# --- Authoritative results ---

class MatchResultEntry(ApiModel):
    match_id: str = Field(min_length=1)
    winner_side: Optional[Side] = None
    score_a: ScoreValue = Field(default=None, ge=0, le=10)
    score_b: ScoreValue = Field(default=None, ge=0, le=10)

class ExtractedResult(FrozenApiModel):
    """One decided match pulled out of the wiki markup."""
    tab: Tab
    match_id: str
    winner_side: Side
    score_a: int
    score_b: int

class ResultsSave(ApiModel):
    tournament_id: str = Field(min_length=1)
    tab: Tab
    results: List[MatchResultEntry]

class ResultsResponse(ApiModel):
    results: List[MatchResultEntry]

class ResultsSaveResponse(ApiModel):
    ok: bool = True
    changed: int


# --- Leaderboard ---

class LeaderboardEntry(ApiModel):
    user_id: int
    username: str
    points: int

class LeaderboardResponse(ApiModel):
    leaderboard: List[LeaderboardEntry]


# --- Board (resolved labels for one tab) ---

class BoardMatch(ApiModel):
    id: str
    round_name: str
    source_key: Optional[str] = None
    scheduled_at: Optional[str] = None
    side_a: str
    side_b: str
    picked: Optional[Side] = None
    score_a: ScoreValue = None
    score_b: ScoreValue = None
    points: Optional[int] = None

class BoardResponse(ApiModel):
    tournament_id: str
    tab: Tab
    locked: bool
    lock_date: Optional[datetime] = None
    matches: List[BoardMatch]


# --- Auth ---

class UserRegister(ApiModel):
    username: str = Field(min_length=2, max_length=24)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

class UserLogin(ApiModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

class UserPublic(ApiModel):
    id: int
    username: str
    email: str

class AuthResponse(ApiModel):
    token: str
    user: UserPublic

class MeResponse(ApiModel):
    user: UserPublic
