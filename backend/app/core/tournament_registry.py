import yaml
from datetime import date, datetime, time, timezone
from pathlib import Path
from pydantic import BaseModel
from typing import Dict, List, Optional

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "tournaments.yaml"

class SeasonConfig(BaseModel):
    title: str
    year: str

class TrackedTournament(BaseModel):
    id: str
    name: str
    wiki_title: str
    start_date: date
    end_date: Optional[date] = None
    location: str = "TBD"
    prize_pool: str = "TBD"
    aliases: List[str] = []

    @property
    def lock_instant(self) -> datetime:
        """Predictions close at 00:00 UTC on the start date."""
        return datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)

class TournamentRegistry:
    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        self.season: Optional[SeasonConfig] = None
        self.tournaments: Dict[str, TrackedTournament] = {}
        self._aliases: Dict[str, str] = {}
        self._load(config_path)

    def _load(self, path: Path):
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if data.get("season"):
            self.season = SeasonConfig(**data["season"])
        for key, val in (data.get("tournaments") or {}).items():
            tracked = TrackedTournament(id=key, **val)
            self.tournaments[key] = tracked
            for alias in tracked.aliases:
                self._aliases[alias] = key

    def canonical_id(self, tournament_id: str) -> str:
        """Collapse an alternate or historical id onto its canonical id."""
        cleaned = tournament_id.strip()
        return self._aliases.get(cleaned, cleaned)

    def get(self, tournament_id: str) -> Optional[TrackedTournament]:
        return self.tournaments.get(self.canonical_id(tournament_id))

    def lock_instant(self, tournament_id: str) -> Optional[datetime]:
        """Lock instant for a tracked tournament; untracked ids never lock."""
        tracked = self.get(tournament_id)
        return tracked.lock_instant if tracked else None

    def list_all(self) -> List[TrackedTournament]:
        return list(self.tournaments.values())

# Singleton instance
registry = TournamentRegistry()
