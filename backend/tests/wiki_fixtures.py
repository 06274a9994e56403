BOSTON_TITLE = "Rocket League Championship Series/2026/Boston Major"
PARIS_TITLE = "Rocket League Championship Series/2026/Paris Major"
SEASON_TITLE = "Rocket League Championship Series/2026"

BOSTON_PAGE = """{{Infobox league
|name=RLCS 2026 - [[Boston]] Major
|sdate=2026-02-19
|edate=2026-02-22
|city=Boston
|country=United States
|venue=[[Agganis Arena]]
|prizepoolusd=354,000
|team_number=16
}}
==Group Stage==
{{box|start}}
{{GroupTableLeague|title=Group A|width=400px
|team1=NRG
|team2=nip
|team3=pwr
|team4=Five Fears
}}
{{GroupTableLeague|title=Group B|width=400px
|team1=falcons
|team2=gk
|team3=redacted
|team4=furia
}}
{{GroupTableLeague|title=Group C|width=400px
|team1=Karmine Corp
|team2=Team Vitality
|team3=Twisted Minds
|team4=Spacestation Gaming
}}
{{GroupTableLeague|title=Group D|width=400px
|team1=Gentle Mates
|team2=sr
|team3=mibr
|team4=tsm
}}
{{Matchlist|id=grpA|title=Group A Matches
|M1={{Match
    |opponent1={{TeamOpponent|pwr|score=3}}
    |opponent2={{TeamOpponent|nrg|score=1}}
    |date=February 19, 2026 - 12:00
}}
|M2={{Match
    |opponent1={{TeamOpponent|five fears|score=0}}
    |opponent2={{TeamOpponent|nip|score=3}}
}}
|M3={{Match
    |opponent1={{TeamOpponent|nip|score=3}}
    |opponent2={{TeamOpponent|nrg|score=2}}
}}
|M4={{Match
    |opponent1={{TeamOpponent|five fears|score=2}}
    |opponent2={{TeamOpponent|pwr|score=3}}
}}
|M5={{Match
    |opponent1={{TeamOpponent|five fears|score=}}
    |opponent2={{TeamOpponent|nrg|score=}}
}}
|M6={{Match
    |opponent1={{TeamOpponent|nip|score=1}}
    |opponent2={{TeamOpponent|pwr|score=3}}
}}
}}
{{box|end}}
===Playoffs===
{{Bracket|Bracket/8L4DSL1D
|R1M1={{Match
    |opponent1={{TeamOpponent|furia|score=3}}
    |opponent2={{TeamOpponent|gk|score=4}}
    |date=February 21, 2026 - 17:00 {{Abbr/EST}}
}}
|R1M2={{Match
    |opponent1literal=2nd Place Group D
    |opponent2literal=2nd Place Group A
}}
|R2M1={{Match
    |opponent1={{TeamOpponent|pwr|score=4}}
    |opponent2={{TeamOpponent|sr|score=2}}
}}
}}
"""

SEASON_PAGE = """{{Infobox league series
|name=RLCS 2026
}}
"""


def revisions_payload(pages):
    """MediaWiki formatversion=2 revisions answer for (title, content) pairs."""
    return {
        "batchcomplete": True,
        "query": {
            "pages": [
                {
                    "pageid": idx + 1,
                    "ns": 0,
                    "title": title,
                    "revisions": [{"slots": {"main": {"contentmodel": "wikitext", "content": content}}}],
                }
                for idx, (title, content) in enumerate(pages)
            ]
        },
    }


def links_payload(title, linked_titles):
    return {
        "batchcomplete": True,
        "query": {
            "pages": [
                {"pageid": 1, "ns": 0, "title": title, "links": [{"ns": 0, "title": t} for t in linked_titles]}
            ]
        },
    }
