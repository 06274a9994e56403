"""
Pick'em API Client - async httpx client for this service's HTTP API.

Used by PickemSession as its saver, and by scripts that talk to a running
server. A 423 answer surfaces as PredictionLockedError; any other failure
as ApiClientError.
"""

from datetime import datetime
from typing import List, Optional, Sequence

import httpx

from backend.app.core.errors import ApiClientError, PredictionLockedError
from backend.app.models.enums import Tab
from backend.app.schemas.pickem_schema import (
    AuthResponse, LeaderboardEntry, MatchPoints, MatchResultEntry, PickEntry, PicksSave,
)


def _parse_lock_date(value) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class PickemApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ApiClientError(f"API unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code == 423:
            lock_date = _parse_lock_date(data.get("lockDate"))
            if lock_date is None:
                raise ApiClientError(data.get("error") or "Predictions are locked", response.status_code)
            raise PredictionLockedError(data.get("tournamentId", ""), lock_date)
        if response.is_error:
            raise ApiClientError(data.get("error") or f"API error ({response.status_code})", response.status_code)
        return data

    # --- Auth ---

    async def register(self, username: str, email: str, password: str) -> AuthResponse:
        data = await self._request("POST", "/auth/register", json={"username": username, "email": email, "password": password})
        auth = AuthResponse.model_validate(data)
        self.token = auth.token
        return auth

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        auth = AuthResponse.model_validate(data)
        self.token = auth.token
        return auth

    # --- Picks ---

    async def get_picks(self, tournament_id: str, tab: Tab) -> List[PickEntry]:
        data = await self._request("GET", "/picks", params={"tournamentId": tournament_id, "tab": str(tab)})
        return [PickEntry.model_validate(item) for item in data.get("picks", [])]

    async def save_picks(self, tournament_id: str, tab: Tab, picks: Sequence[PickEntry]) -> int:
        payload = PicksSave(tournament_id=tournament_id, tab=tab, picks=list(picks))
        data = await self._request("PUT", "/picks", json=payload.model_dump(mode="json", by_alias=True))
        return data.get("saved", 0)

    async def get_match_points(self, tournament_id: str, tab: Tab) -> List[MatchPoints]:
        data = await self._request("GET", "/picks/points", params={"tournamentId": tournament_id, "tab": str(tab)})
        return [MatchPoints.model_validate(item) for item in data.get("pointsByMatch", [])]

    # --- Public reads ---

    async def get_results(self, tournament_id: str, tab: Tab) -> List[MatchResultEntry]:
        data = await self._request("GET", "/results", params={"tournamentId": tournament_id, "tab": str(tab)})
        return [MatchResultEntry.model_validate(item) for item in data.get("results", [])]

    async def get_leaderboard(self) -> List[LeaderboardEntry]:
        data = await self._request("GET", "/leaderboard")
        return [LeaderboardEntry.model_validate(item) for item in data.get("leaderboard", [])]
