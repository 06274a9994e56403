"""
Bracket Templates - hardcoded seeding rules.

Two formats are supported:
- the 16-team Swiss stage (5 rounds, winner/loser references between rounds)
- the 9-match major playoff bracket (lower round 1, mixed quarterfinals,
  semifinals, grand final)

Plus the 4-team round-robin groups used by the majors' group stage.
Every template only references matches of earlier rounds.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from backend.app.schemas.bracket_schema import (
    Bracket, BracketMatch, BracketRound, SwissGroup, SwissGroupMatch, SwissGroupStanding,
    seed, winner, loser,
)

# External source key -> internal match id, in bracket order
PLAYOFF_SOURCE_KEY_TO_MATCH_ID: Dict[str, str] = {
    "R1M1": "lb-r1-m1",
    "R1M2": "lb-r1-m2",
    "R2M1": "ub-qf-m1",
    "R2M2": "ub-qf-m2",
    "R2M3": "lb-qf-m1",
    "R2M4": "lb-qf-m2",
    "R3M1": "sf-m1",
    "R3M2": "sf-m2",
    "R4M1": "gf-m1",
}

DEFAULT_MAJOR_SEEDS: Dict[str, Tuple[str, str]] = {
    "R1M1": ("2nd Place Group C", "2nd Place Group B"),
    "R1M2": ("2nd Place Group D", "2nd Place Group A"),
    "R2M1": ("1st Place Group A", "1st Place Group D"),
    "R2M2": ("1st Place Group B", "1st Place Group C"),
}

DEFAULT_SWISS_POOLS: List[Tuple[str, List[str]]] = [
    ("Group A", ["NRG", "Ninjas in Pyjamas", "PWR", "Five Fears"]),
    ("Group B", ["Team Falcons", "Geekay Esports", "[REDACTED]", "FURIA"]),
    ("Group C", ["Karmine Corp", "Team Vitality", "Twisted Minds", "Spacestation Gaming"]),
    ("Group D", ["Gentle Mates", "Shopify Rebellion", "MIBR", "TSM"]),
]


def build_swiss16_bracket() -> Bracket:
    """Swiss stage for 16 seeds: 0-0, then 1-0/0-1, 2-0/1-1/0-2, 2-1/1-2, 2-2."""
    def m(match_id, side_a, side_b):
        return BracketMatch(id=match_id, side_a=side_a, side_b=side_b)

    return Bracket(rounds=[
        BracketRound(id="swiss-r1", name="Swiss Round 1 (0-0)", matches=[
            m("sw-r1-m1", seed("Seed 1"), seed("Seed 16")),
            m("sw-r1-m2", seed("Seed 8"), seed("Seed 9")),
            m("sw-r1-m3", seed("Seed 5"), seed("Seed 12")),
            m("sw-r1-m4", seed("Seed 4"), seed("Seed 13")),
            m("sw-r1-m5", seed("Seed 3"), seed("Seed 14")),
            m("sw-r1-m6", seed("Seed 6"), seed("Seed 11")),
            m("sw-r1-m7", seed("Seed 7"), seed("Seed 10")),
            m("sw-r1-m8", seed("Seed 2"), seed("Seed 15")),
        ]),
        BracketRound(id="swiss-r2", name="Swiss Round 2 (1-0 / 0-1)", matches=[
            m("sw-r2-10-m1", winner("sw-r1-m1"), winner("sw-r1-m2")),
            m("sw-r2-10-m2", winner("sw-r1-m3"), winner("sw-r1-m4")),
            m("sw-r2-10-m3", winner("sw-r1-m5"), winner("sw-r1-m6")),
            m("sw-r2-10-m4", winner("sw-r1-m7"), winner("sw-r1-m8")),
            m("sw-r2-01-m1", loser("sw-r1-m1"), loser("sw-r1-m2")),
            m("sw-r2-01-m2", loser("sw-r1-m3"), loser("sw-r1-m4")),
            m("sw-r2-01-m3", loser("sw-r1-m5"), loser("sw-r1-m6")),
            m("sw-r2-01-m4", loser("sw-r1-m7"), loser("sw-r1-m8")),
        ]),
        BracketRound(id="swiss-r3", name="Swiss Round 3 (2-0 / 1-1 / 0-2)", matches=[
            m("sw-r3-20-m1", winner("sw-r2-10-m1"), winner("sw-r2-10-m2")),
            m("sw-r3-20-m2", winner("sw-r2-10-m3"), winner("sw-r2-10-m4")),
            m("sw-r3-11-m1", loser("sw-r2-10-m1"), winner("sw-r2-01-m1")),
            m("sw-r3-11-m2", loser("sw-r2-10-m2"), winner("sw-r2-01-m2")),
            m("sw-r3-11-m3", loser("sw-r2-10-m3"), winner("sw-r2-01-m3")),
            m("sw-r3-11-m4", loser("sw-r2-10-m4"), winner("sw-r2-01-m4")),
            m("sw-r3-02-m1", loser("sw-r2-01-m1"), loser("sw-r2-01-m2")),
            m("sw-r3-02-m2", loser("sw-r2-01-m3"), loser("sw-r2-01-m4")),
        ]),
        BracketRound(id="swiss-r4", name="Swiss Round 4 (2-1 / 1-2)", matches=[
            m("sw-r4-21-m1", loser("sw-r3-20-m1"), winner("sw-r3-11-m1")),
            m("sw-r4-21-m2", loser("sw-r3-20-m2"), winner("sw-r3-11-m2")),
            m("sw-r4-21-m3", winner("sw-r3-11-m3"), winner("sw-r3-11-m4")),
            m("sw-r4-12-m1", winner("sw-r3-02-m1"), loser("sw-r3-11-m1")),
            m("sw-r4-12-m2", winner("sw-r3-02-m2"), loser("sw-r3-11-m2")),
            m("sw-r4-12-m3", loser("sw-r3-11-m3"), loser("sw-r3-11-m4")),
        ]),
        BracketRound(id="swiss-r5", name="Swiss Round 5 (2-2)", matches=[
            m("sw-r5-22-m1", loser("sw-r4-21-m1"), winner("sw-r4-12-m1")),
            m("sw-r5-22-m2", loser("sw-r4-21-m2"), winner("sw-r4-12-m2")),
            m("sw-r5-22-m3", loser("sw-r4-21-m3"), winner("sw-r4-12-m3")),
        ]),
    ])


def build_major_playoffs(
    seeds: Dict[str, Tuple[str, str]],
    dates: Optional[Dict[str, Optional[str]]] = None,
    with_source_keys: bool = True,
) -> Bracket:
    """
    The 9-match major bracket. `seeds` gives the labels of the first two
    rounds' seeded sides keyed by source key (R1M1, R1M2, R2M1, R2M2).
    The lower quarterfinals take the upper quarterfinal losers crosswise.
    """
    dates = dates or {}

    def m(source_key, side_a, side_b):
        return BracketMatch(
            id=PLAYOFF_SOURCE_KEY_TO_MATCH_ID[source_key],
            source_key=source_key if with_source_keys else None,
            scheduled_at=dates.get(source_key),
            side_a=side_a,
            side_b=side_b,
        )

    def seeded(source_key):
        label_a, label_b = seeds[source_key]
        return m(source_key, seed(label_a), seed(label_b))

    return Bracket(rounds=[
        BracketRound(id="lb-r1", name="Lower Bracket Round 1", matches=[
            seeded("R1M1"),
            seeded("R1M2"),
        ]),
        BracketRound(id="mixed-qf", name="Upper + Lower Quarterfinals", matches=[
            seeded("R2M1"),
            seeded("R2M2"),
            m("R2M3", winner("lb-r1-m1"), loser("ub-qf-m2")),
            m("R2M4", winner("lb-r1-m2"), loser("ub-qf-m1")),
        ]),
        BracketRound(id="semis", name="Semifinals", matches=[
            m("R3M1", winner("lb-qf-m2"), winner("ub-qf-m2")),
            m("R3M2", winner("lb-qf-m1"), winner("ub-qf-m1")),
        ]),
        BracketRound(id="grand-final", name="Grand Final", matches=[
            m("R4M1", winner("sf-m2"), winner("sf-m1")),
        ]),
    ])


def build_default_major_playoffs() -> Bracket:
    return build_major_playoffs(DEFAULT_MAJOR_SEEDS, with_source_keys=False)


def group_slug(group_name: str) -> str:
    return "-".join(group_name.lower().split())


def group_match_id(group_name: str, round_number: int, index: int) -> str:
    """`Group A`, round 2, 4th match -> `group-a-r2-m4`."""
    return f"{group_slug(group_name)}-r{round_number}-m{index}"


def group_round_robin(teams: Sequence[str]) -> List[Tuple[int, str, str]]:
    """(round, side A, side B) for a 4-team group, 2 matches per round."""
    return [
        (1, teams[2], teams[0]),
        (1, teams[3], teams[1]),
        (2, teams[1], teams[0]),
        (2, teams[3], teams[2]),
        (3, teams[3], teams[0]),
        (3, teams[1], teams[2]),
    ]


def build_swiss_groups_from_pools(pools: Sequence[Tuple[str, Sequence[str]]]) -> List[SwissGroup]:
    """Groups with fresh standings. Pools with fewer than 4 teams are dropped."""
    groups = []
    for name, teams in pools:
        if len(teams) < 4:
            continue
        group_teams = list(teams[:4])
        groups.append(SwissGroup(
            id=f"swiss-group-{chr(97 + len(groups))}",
            name=name,
            standings=[SwissGroupStanding(team=team) for team in group_teams],
            matches=[
                SwissGroupMatch(
                    id=group_match_id(name, rnd, idx + 1),
                    round=rnd,
                    side_a=side_a,
                    side_b=side_b,
                )
                for idx, (rnd, side_a, side_b) in enumerate(group_round_robin(group_teams))
            ],
        ))
    return groups


def build_swiss_groups_from_teams(teams: Sequence[str]) -> List[SwissGroup]:
    """Split the first 16 teams into Groups A-D in order."""
    if len(teams) < 16:
        return []
    return build_swiss_groups_from_pools([
        ("Group A", teams[0:4]),
        ("Group B", teams[4:8]),
        ("Group C", teams[8:12]),
        ("Group D", teams[12:16]),
    ])
