"""
Slot Resolver - turns winner/loser references into team labels.

Given a bracket (a DAG of matches keyed by id) and a user's picks
(match id -> predicted winning side), every slot resolves to:
- its seed label,
- the label of the side the user picked upstream (recursively), or
- a "Winner X" / "Loser X" placeholder while the upstream match is unpicked.

Brackets come from the templates or the wiki parser, which only emit forward
references to earlier rounds. The depth cap and the visited-path check are
extra guards for malformed graphs; correctness does not rely on them.
"""

from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from backend.app.models.enums import Side
from backend.app.schemas.bracket_schema import Bracket, BracketMatch, SeedSlot

MAX_DEPTH = 8
UNKNOWN_LABEL = "TBD"

Predictions = Mapping[str, Optional[Side]]


def index_matches(bracket: Bracket) -> Dict[str, BracketMatch]:
    return {match.id: match for match in bracket.all_matches()}


def resolve_slot_label(
    slot,
    matches_by_id: Mapping[str, BracketMatch],
    predictions: Predictions,
    depth: int = 0,
    _path: FrozenSet[str] = frozenset(),
) -> str:
    if isinstance(slot, SeedSlot):
        return slot.label

    if depth > MAX_DEPTH:
        return UNKNOWN_LABEL

    parent = matches_by_id.get(slot.from_match_id)
    if parent is None or parent.id in _path:
        return UNKNOWN_LABEL

    picked = predictions.get(parent.id)
    if picked is None:
        prefix = "Winner" if slot.type == "winner" else "Loser"
        return f"{prefix} {parent.source_key or parent.id}"

    picked = Side(picked)
    if slot.type == "winner":
        next_slot = parent.side_a if picked is Side.A else parent.side_b
    else:
        next_slot = parent.side_b if picked is Side.A else parent.side_a
    return resolve_slot_label(next_slot, matches_by_id, predictions, depth + 1, _path | {parent.id})


def resolve_match_labels(
    match: BracketMatch,
    matches_by_id: Mapping[str, BracketMatch],
    predictions: Predictions,
) -> Tuple[str, str]:
    return (
        resolve_slot_label(match.side_a, matches_by_id, predictions),
        resolve_slot_label(match.side_b, matches_by_id, predictions),
    )


def resolve_bracket_labels(bracket: Bracket, predictions: Predictions) -> Dict[str, Tuple[str, str]]:
    """Both side labels of every match, keyed by match id."""
    matches_by_id = index_matches(bracket)
    return {
        match_id: resolve_match_labels(match, matches_by_id, predictions)
        for match_id, match in matches_by_id.items()
    }
