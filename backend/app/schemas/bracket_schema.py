from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, Dict, List, Literal, Optional, Union

from backend.app.core.errors import BracketGraphError


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenApiModel(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# --- Slots (tagged union on `type`) ---

class SeedSlot(FrozenApiModel):
    type: Literal["seed"] = "seed"
    label: str

class ReferenceSlot(FrozenApiModel):
    type: Literal["winner", "loser"]
    from_match_id: str

BracketSlot = Annotated[Union[SeedSlot, ReferenceSlot], Field(discriminator="type")]


def seed(label: str) -> SeedSlot:
    return SeedSlot(label=label)

def winner(from_match_id: str) -> ReferenceSlot:
    return ReferenceSlot(type="winner", from_match_id=from_match_id)

def loser(from_match_id: str) -> ReferenceSlot:
    return ReferenceSlot(type="loser", from_match_id=from_match_id)


# --- Bracket graph ---

class BracketMatch(FrozenApiModel):
    id: str
    source_key: Optional[str] = None
    scheduled_at: Optional[str] = None
    side_a: BracketSlot
    side_b: BracketSlot

    @property
    def slots(self) -> tuple:
        return (self.side_a, self.side_b)

class BracketRound(FrozenApiModel):
    id: str
    name: str
    matches: List[BracketMatch]

class Bracket(FrozenApiModel):
    rounds: List[BracketRound]

    def all_matches(self) -> List[BracketMatch]:
        return [match for rnd in self.rounds for match in rnd.matches]

    def check_graph(self) -> None:
        """
        Enforce the graph invariants: unique match ids, every reference points
        at a match of this bracket, and no match depends on its own outcome.
        Raises BracketGraphError.
        """
        by_id: Dict[str, BracketMatch] = {}
        for match in self.all_matches():
            if match.id in by_id:
                raise BracketGraphError(f"Match {match.id} appears more than once")
            by_id[match.id] = match

        for match in by_id.values():
            for slot in match.slots:
                if isinstance(slot, ReferenceSlot) and slot.from_match_id not in by_id:
                    raise BracketGraphError(
                        f"Match {match.id} references unknown match {slot.from_match_id}"
                    )

        # Iterative DFS, colouring nodes to find back edges
        state: Dict[str, int] = {}  # 1 = on stack, 2 = done
        for root in by_id:
            if state.get(root) == 2:
                continue
            stack = [(root, iter(_parents(by_id[root])))]
            state[root] = 1
            while stack:
                node, parents = stack[-1]
                parent = next(parents, None)
                if parent is None:
                    state[node] = 2
                    stack.pop()
                    continue
                if state.get(parent) == 1:
                    raise BracketGraphError(f"Cycle through match {parent}")
                if state.get(parent) is None:
                    state[parent] = 1
                    stack.append((parent, iter(_parents(by_id[parent]))))


def _parents(match: BracketMatch) -> List[str]:
    return [slot.from_match_id for slot in match.slots if isinstance(slot, ReferenceSlot)]


# --- Swiss groups ---

class SwissGroupStanding(FrozenApiModel):
    team: str
    series_record: str = "0-0"
    game_record: str = "0-0"
    game_diff: str = "0"

class SwissGroupMatch(FrozenApiModel):
    id: str
    round: Literal[1, 2, 3]
    side_a: str
    side_b: str

class SwissGroup(FrozenApiModel):
    id: str
    name: str
    standings: List[SwissGroupStanding]
    matches: List[SwissGroupMatch]


# --- Tournament ---

class Tournament(FrozenApiModel):
    id: str
    name: str
    location: str
    start_date: str
    end_date: str
    prize_pool: str
    source_url: Optional[str] = None
    bracket: Optional[Bracket] = None
    swiss_bracket: Optional[Bracket] = None
    swiss_groups: Optional[List[SwissGroup]] = None
