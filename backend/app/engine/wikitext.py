"""
Wikitext Extraction - primitives for reading Liquipedia match markup.

Everything here is a pure function of the input text. A field, window or
section that cannot be found is reported as missing (None / "" / skipped),
never raised: absent data means "not published yet".
"""

import logging
import re
import unicodedata
from typing import Dict, List, Optional

from backend.app.engine.bracket_templates import PLAYOFF_SOURCE_KEY_TO_MATCH_ID, group_match_id
from backend.app.models.enums import Side, Tab
from backend.app.schemas.pickem_schema import ExtractedResult

logger = logging.getLogger(__name__)

# Upper bound on one {{Match ...}} block, also the fallback slice when braces never balance
MATCH_WINDOW_SIZE = 5500

GROUP_LETTERS = ("A", "B", "C", "D")
GROUP_MATCH_COUNT = 6
GROUP_ROUNDS = (1, 1, 2, 2, 3, 3)

# Normalized source token -> canonical display name
TEAM_ALIASES: Dict[str, str] = {
    "nrg": "NRG",
    "nip": "Ninjas in Pyjamas",
    "pwr": "PWR",
    "five fears": "Five Fears",
    "falcons": "Team Falcons",
    "gk": "Geekay Esports",
    "redacted": "[REDACTED]",
    "furia": "FURIA",
    "karmine corp": "Karmine Corp",
    "team vitality": "Team Vitality",
    "twisted minds": "Twisted Minds",
    "spacestation gaming": "Spacestation Gaming",
    "gentle mates": "Gentle Mates",
    "sr": "Shopify Rebellion",
    "shopify rebellion rl": "Shopify Rebellion",
    "mibr": "MIBR",
    "tsm": "TSM",
    "gen g": "Gen.G Mobil1 Racing",
    "gen g mobil1 racing": "Gen.G Mobil1 Racing",
    "g2": "G2 Stride",
    "bds": "Team BDS",
}

_PIPED_LINK = re.compile(r"\[\[([^|\]]+)\|([^\]]+)\]\]")
_LINK = re.compile(r"\[\[([^\]]+)\]\]")
_TEMPLATE = re.compile(r"\{\{[^{}]*\}\}")
_TAG = re.compile(r"<[^>]+>")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_DIGITS = re.compile(r"[0-9]+")
_SCORE = re.compile(r"\|score=([0-9]+)")
_DATE = re.compile(r"\|date=([^\n]+)")
_TEAM_FIELD = re.compile(r"\|team=([^\n|]+)")
_SWISS_RESULT_PAIR = re.compile(
    r"\|opponent1=\{\{TeamOpponent\|[^\n}]*\|score=([^\n}]*)\}\}\s*\n"
    r"\s*\|opponent2=\{\{TeamOpponent\|[^\n}]*\|score=([^\n}]*)\}\}"
)


# --- Text cleaning ---

def clean_wiki_text(value: str) -> str:
    """Strip links, templates, tags and &nbsp; from a free-text field."""
    text = _PIPED_LINK.sub(r"\2", value)
    text = _LINK.sub(r"\1", text)
    # Innermost templates first, until nested ones are gone too
    previous = None
    while previous != text:
        previous = text
        text = _TEMPLATE.sub("", text)
    text = _TAG.sub("", text)
    return text.replace("&nbsp;", " ").strip()


def extract_field(content: str, key: str) -> Optional[str]:
    """Value of the first `|key=value` line, or None when absent."""
    match = re.search(r"\|" + re.escape(key) + r"\s*=([^\n]+)", content)
    if not match:
        return None
    return match.group(1).strip()


# --- Teams ---

def normalize_team_key(value: str) -> str:
    """Case-fold, drop diacritics, collapse everything non-alphanumeric to one space."""
    text = unicodedata.normalize("NFD", clean_wiki_text(value).casefold())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _NON_ALNUM.sub(" ", text).strip()


def display_team_name(token: str) -> str:
    alias = TEAM_ALIASES.get(normalize_team_key(token))
    if alias:
        return alias
    cleaned = clean_wiki_text(token).replace("_", " ").strip()
    return cleaned or "TBD"


def extract_teams(content: str) -> List[str]:
    """Distinct `|team=` names in document order, placeholders excluded."""
    seen = []
    for match in _TEAM_FIELD.finditer(content):
        name = clean_wiki_text(match.group(1))
        if name and name.lower() != "tbd" and name not in seen:
            seen.append(name)
    return seen


# --- Scores ---

def parse_series_score(value) -> Optional[int]:
    """An integer only when the trimmed token is made of ASCII digits ("W", "FF", "" -> None)."""
    if value is None:
        return None
    trimmed = str(value).strip()
    if not _DIGITS.fullmatch(trimmed):
        return None
    return int(trimmed)


def resolve_winner_side(score_a: Optional[int], score_b: Optional[int]) -> Optional[Side]:
    if score_a is None or score_b is None or score_a == score_b:
        return None
    return Side.A if score_a > score_b else Side.B


# --- Match windows (playoffs) ---

def extract_match_window(content: str, source_key: str) -> str:
    """
    The `|<key>={{Match ... }}` block, delimited by balanced braces and capped
    at MATCH_WINDOW_SIZE characters. "" when the key is not on the page.
    """
    start = content.find(f"|{source_key}={{{{Match")
    if start < 0:
        return ""

    limit = min(len(content), start + MATCH_WINDOW_SIZE)
    i = start + len(source_key) + 2
    depth = 0
    while i < limit - 1:
        pair = content[i:i + 2]
        if pair == "{{":
            depth += 1
            i += 2
        elif pair == "}}":
            depth -= 1
            i += 2
            if depth == 0:
                return content[start:i]
        else:
            i += 1
    return content[start:limit]


def parse_bracket_side_label(window_text: str, side: int) -> str:
    literal = re.search(r"\|opponent" + str(side) + r"literal=([^\n]+)", window_text)
    team = re.search(r"\|opponent" + str(side) + r"=\{\{TeamOpponent\|([^|}\n]+)", window_text)

    if literal and clean_wiki_text(literal.group(1)):
        return clean_wiki_text(literal.group(1))
    if team and clean_wiki_text(team.group(1)):
        return display_team_name(team.group(1))
    return f"TBD {side}"


def parse_match_date(window_text: str) -> Optional[str]:
    match = _DATE.search(window_text)
    if not match:
        return None
    return clean_wiki_text(match.group(1)) or None


def _opponent_line(lines: List[str], side: int) -> Optional[str]:
    prefix = f"|opponent{side}="
    return next((line for line in lines if line.lstrip().startswith(prefix)), None)


def _line_score(line: Optional[str]) -> Optional[int]:
    if line is None:
        return None
    match = _SCORE.search(line)
    return parse_series_score(match.group(1)) if match else None


# --- Group sections (swiss) ---

def extract_group_section(content: str, letter: str) -> str:
    """Text between `|title=Group X Matches` and the next group, box end or playoffs heading."""
    pattern = (
        r"\|title=Group " + letter + r" Matches(.*?)"
        r"(?:\|title=Group [A-D] Matches|\{\{box\|END|===Playoffs===)"
    )
    match = re.search(pattern, content, re.S)
    return match.group(1) if match else ""


def group_round(index: int) -> int:
    return GROUP_ROUNDS[index]


# --- Results for a sync pass ---

def parse_swiss_results(content: str) -> List[ExtractedResult]:
    entries = []
    for letter in GROUP_LETTERS:
        section = extract_group_section(content, letter)
        if not section:
            continue

        pairs = _SWISS_RESULT_PAIR.findall(section)[:GROUP_MATCH_COUNT]
        for idx, (raw_a, raw_b) in enumerate(pairs):
            score_a = parse_series_score(raw_a)
            score_b = parse_series_score(raw_b)
            side = resolve_winner_side(score_a, score_b)
            if side is None:
                continue
            entries.append(ExtractedResult(
                tab=Tab.SWISS,
                match_id=group_match_id(f"Group {letter}", group_round(idx), idx + 1),
                winner_side=side,
                score_a=score_a,
                score_b=score_b,
            ))
    return entries


def parse_playoff_results(content: str) -> List[ExtractedResult]:
    entries = []
    for source_key, match_id in PLAYOFF_SOURCE_KEY_TO_MATCH_ID.items():
        window_text = extract_match_window(content, source_key)
        if not window_text:
            continue

        lines = window_text.split("\n")
        score_a = _line_score(_opponent_line(lines, 1))
        score_b = _line_score(_opponent_line(lines, 2))
        side = resolve_winner_side(score_a, score_b)
        if side is None:
            logger.debug("No decided result for %s yet", source_key)
            continue
        entries.append(ExtractedResult(
            tab=Tab.PLAYOFFS,
            match_id=match_id,
            winner_side=side,
            score_a=score_a,
            score_b=score_b,
        ))
    return entries


def parse_all_results(content: str) -> List[ExtractedResult]:
    return parse_swiss_results(content) + parse_playoff_results(content)
