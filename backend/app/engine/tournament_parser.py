"""
Tournament Parser - builds a structured Tournament out of one wiki page.

Combines the wikitext primitives with the bracket templates:
- metadata (name, dates, location, prize pool)
- the Swiss group pools and their round-robin matches
- the 9-match playoff bracket for majors

Missing sections degrade to None / template defaults; nothing here raises
for malformed markup.
"""

import re
from typing import Dict, List, Optional, Tuple

from backend.app.engine.bracket_templates import (
    DEFAULT_SWISS_POOLS, PLAYOFF_SOURCE_KEY_TO_MATCH_ID,
    build_major_playoffs, build_swiss16_bracket,
    build_swiss_groups_from_pools, build_swiss_groups_from_teams, group_match_id,
)
from backend.app.engine.wikitext import (
    GROUP_LETTERS, GROUP_MATCH_COUNT,
    clean_wiki_text, display_team_name, extract_field, extract_group_section,
    extract_match_window, extract_teams, group_round,
    parse_bracket_side_label, parse_match_date,
)
from backend.app.schemas.bracket_schema import Bracket, SwissGroup, SwissGroupMatch, Tournament

WIKI_PAGE_BASE = "https://liquipedia.net/rocketleague/"
SEASON_PREFIX = "Rocket League Championship Series/"

_MAJOR_TITLE = re.compile(r"/(Boston Major|Paris Major)$")
_SEASON_PAGE = re.compile(
    r"^Rocket League Championship Series/\d{4}/"
    r"(Kick-Off Weekend|Boston Major|Paris Major|Last Chance Qualifier/Region \d+)$"
)
_GROUP_OPPONENT = re.compile(r"\|opponent[12]=\{\{TeamOpponent\|([^|}\n]+)")
_PRIZE_NUMBER = re.compile(r"\d+(\.\d+)?")

MIN_GROUP_OPPONENTS = GROUP_MATCH_COUNT * 2


def title_to_id(title: str) -> str:
    """`Rocket League Championship Series/2026/Boston Major` -> `rlcs-2026-boston-major`."""
    text = title.lower()
    if text.startswith(SEASON_PREFIX.lower()):
        text = "rlcs-" + text[len(SEASON_PREFIX):]
    text = re.sub(r"[^\w]+", "-", text, flags=re.ASCII)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def is_major_title(title: str) -> bool:
    return bool(_MAJOR_TITLE.search(title))


def select_season_titles(season_title: str, linked_titles: List[str]) -> List[str]:
    """The season page plus the linked event pages worth parsing, first-seen order."""
    selected = [season_title]
    for title in linked_titles:
        if title.startswith(season_title + "/") and _SEASON_PAGE.match(title) and title not in selected:
            selected.append(title)
    return selected


def format_prize_pool(content: str) -> str:
    usd = extract_field(content, "prizepoolusd")
    if usd:
        amount_text = usd.replace(",", "")
        if _PRIZE_NUMBER.fullmatch(amount_text):
            amount = float(amount_text)
            if amount.is_integer():
                return f"${int(amount):,}"
            return f"${amount:,}"
    prize = extract_field(content, "prizepool")
    return clean_wiki_text(prize if prize is not None else "TBD")


def format_location(content: str) -> str:
    parts = [clean_wiki_text(extract_field(content, key) or "") for key in ("city", "country", "venue")]
    return ", ".join(part for part in parts if part) or "TBD"


def extract_group_pools(content: str) -> Optional[List[Tuple[str, List[str]]]]:
    """Four pools of four teams, or None if any group is incomplete."""
    pools = []
    for letter in GROUP_LETTERS:
        match = re.search(
            r"\|title=Group " + letter +
            r".*?\|team1=([^\n|]+).*?\|team2=([^\n|]+).*?\|team3=([^\n|]+).*?\|team4=([^\n|]+)",
            content,
            re.S,
        )
        if not match:
            return None
        pools.append((f"Group {letter}", [display_team_name(token) for token in match.groups()]))
    return pools


def extract_group_matches(content: str) -> Dict[str, List[SwissGroupMatch]]:
    """
    Round-robin matches per group in document order. A group with fewer than
    12 opponent tokens is left out entirely.
    """
    result: Dict[str, List[SwissGroupMatch]] = {}
    for letter in GROUP_LETTERS:
        section = extract_group_section(content, letter)
        if not section:
            continue

        opponents = [display_team_name(token) for token in _GROUP_OPPONENT.findall(section)]
        if len(opponents) < MIN_GROUP_OPPONENTS:
            continue

        name = f"Group {letter}"
        result[name] = [
            SwissGroupMatch(
                id=group_match_id(name, group_round(idx), idx + 1),
                round=group_round(idx),
                side_a=opponents[idx * 2],
                side_b=opponents[idx * 2 + 1],
            )
            for idx in range(GROUP_MATCH_COUNT)
        ]
    return result


def build_major_bracket(content: str) -> Bracket:
    """The 9-match playoff bracket with labels and dates read from the page."""
    seeds = {}
    dates = {}
    for source_key in PLAYOFF_SOURCE_KEY_TO_MATCH_ID:
        window_text = extract_match_window(content, source_key)
        seeds[source_key] = (
            parse_bracket_side_label(window_text, 1),
            parse_bracket_side_label(window_text, 2),
        )
        dates[source_key] = parse_match_date(window_text)
    return build_major_playoffs(seeds, dates)


def build_swiss_groups(content: str, is_major: bool) -> Optional[List[SwissGroup]]:
    pools = extract_group_pools(content)
    if pools:
        exact_by_group = extract_group_matches(content)
        groups = []
        for group in build_swiss_groups_from_pools(pools):
            exact = exact_by_group.get(group.name)
            if exact and len(exact) >= GROUP_MATCH_COUNT:
                group = group.model_copy(update={"matches": exact})
            groups.append(group)
        return groups

    teams = extract_teams(content)
    if len(teams) >= 16:
        return build_swiss_groups_from_teams(teams[:16])
    if is_major:
        return build_swiss_groups_from_pools(DEFAULT_SWISS_POOLS)
    return None


def _team_count(content: str) -> int:
    raw = (extract_field(content, "team_number") or "").replace(",", "")
    try:
        return int(raw)
    except ValueError:
        return 0


def parse_tournament(
    title: str,
    content: Optional[str],
    season_year: str,
    page_base: str = WIKI_PAGE_BASE,
) -> Optional[Tournament]:
    """A Tournament for one page, or None when the page has no usable dates for the season."""
    if not content:
        return None

    start_date = extract_field(content, "sdate") or extract_field(content, "start_date")
    end_date = extract_field(content, "edate") or extract_field(content, "end_date")
    if not start_date or not end_date or not start_date.startswith(season_year):
        return None

    name_field = extract_field(content, "name")
    name = clean_wiki_text(name_field if name_field is not None else title.split("/")[-1])
    is_major = is_major_title(title)
    swiss_bracket = build_swiss16_bracket() if _team_count(content) >= 16 or is_major else None

    return Tournament(
        id=title_to_id(title),
        name=name,
        location=format_location(content),
        start_date=start_date,
        end_date=end_date,
        prize_pool=format_prize_pool(content),
        source_url=page_base + title.replace(" ", "_"),
        bracket=build_major_bracket(content) if is_major else None,
        swiss_bracket=swiss_bracket,
        swiss_groups=build_swiss_groups(content, is_major),
    )
