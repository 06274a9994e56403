import unittest

from backend.app.engine.wikitext import (
    MATCH_WINDOW_SIZE, clean_wiki_text, display_team_name, extract_field, extract_group_section,
    extract_match_window, normalize_team_key, parse_all_results, parse_bracket_side_label,
    parse_match_date, parse_playoff_results, parse_series_score, parse_swiss_results, resolve_winner_side,
)
from backend.app.models.enums import Side, Tab
from backend.tests.wiki_fixtures import BOSTON_PAGE


class TestTextPrimitives(unittest.TestCase):
    def test_clean_wiki_text(self):
        self.assertEqual(clean_wiki_text("[[Boston|Boston, MA]]"), "Boston, MA")
        self.assertEqual(clean_wiki_text("[[Agganis Arena]]"), "Agganis Arena")
        self.assertEqual(clean_wiki_text("17:00 {{Abbr/EST}}"), "17:00")
        self.assertEqual(clean_wiki_text("a{{outer|{{inner}}}}b"), "ab")
        self.assertEqual(clean_wiki_text("<br/>Paris&nbsp;La Defense "), "Paris La Defense")

    def test_extract_field(self):
        content = "|name=RLCS\n|sdate = 2026-02-19\n"
        self.assertEqual(extract_field(content, "name"), "RLCS")
        self.assertEqual(extract_field(content, "sdate"), "2026-02-19")
        self.assertIsNone(extract_field(content, "edate"))

    def test_team_names(self):
        """Aliases win over the raw token, unknown teams keep their cleaned name."""
        self.assertEqual(normalize_team_key("  Gen.G  "), "gen g")
        self.assertEqual(normalize_team_key("Équipe_Été"), "equipe ete")
        self.assertEqual(display_team_name("Gen.G"), "Gen.G Mobil1 Racing")
        self.assertEqual(display_team_name("nip"), "Ninjas in Pyjamas")
        self.assertEqual(display_team_name("Some_New_Team"), "Some New Team")
        self.assertEqual(display_team_name("{{flag|us}}"), "TBD")


class TestScores(unittest.TestCase):
    def test_parse_series_score(self):
        self.assertEqual(parse_series_score("3"), 3)
        self.assertEqual(parse_series_score(" 4 "), 4)
        self.assertEqual(parse_series_score(2), 2)
        for raw in ("W", "FF", "", "-1", "1.5", None):
            self.assertIsNone(parse_series_score(raw), raw)

    def test_winner_is_deterministic(self):
        self.assertIs(resolve_winner_side(3, 1), Side.A)
        self.assertIs(resolve_winner_side(2, 4), Side.B)
        self.assertIsNone(resolve_winner_side(2, 2))
        self.assertIsNone(resolve_winner_side(None, 3))


class TestMatchWindows(unittest.TestCase):
    def test_window_stops_at_balanced_braces(self):
        window = extract_match_window(BOSTON_PAGE, "R1M1")
        self.assertTrue(window.startswith("|R1M1={{Match"))
        self.assertTrue(window.endswith("}}"))
        self.assertNotIn("R1M2", window)

    def test_missing_key_gives_empty_window(self):
        self.assertEqual(extract_match_window(BOSTON_PAGE, "R4M1"), "")

    def test_unbalanced_window_is_capped(self):
        content = "|R1M1={{Match\n" + "x" * (MATCH_WINDOW_SIZE * 2)
        self.assertEqual(len(extract_match_window(content, "R1M1")), MATCH_WINDOW_SIZE)

    def test_side_labels_and_date(self):
        r1m1 = extract_match_window(BOSTON_PAGE, "R1M1")
        self.assertEqual(parse_bracket_side_label(r1m1, 1), "FURIA")
        self.assertEqual(parse_bracket_side_label(r1m1, 2), "Geekay Esports")
        self.assertEqual(parse_match_date(r1m1), "February 21, 2026 - 17:00")

        r1m2 = extract_match_window(BOSTON_PAGE, "R1M2")
        self.assertEqual(parse_bracket_side_label(r1m2, 1), "2nd Place Group D")
        self.assertIsNone(parse_match_date(r1m2))
        self.assertEqual(parse_bracket_side_label("", 2), "TBD 2")

    def test_group_section(self):
        section = extract_group_section(BOSTON_PAGE, "A")
        self.assertIn("|M6={{Match", section)
        self.assertNotIn("R1M1", section)
        self.assertEqual(extract_group_section(BOSTON_PAGE, "B"), "")


class TestResultExtraction(unittest.TestCase):
    def test_swiss_results(self):
        """Undecided group matches (empty scores) are skipped, ids follow the round-robin order."""
        results = parse_swiss_results(BOSTON_PAGE)
        by_id = {r.match_id: r for r in results}

        self.assertEqual(
            sorted(by_id),
            ["group-a-r1-m1", "group-a-r1-m2", "group-a-r2-m3", "group-a-r2-m4", "group-a-r3-m6"],
        )
        self.assertEqual((by_id["group-a-r1-m1"].winner_side, by_id["group-a-r1-m1"].score_a), (Side.A, 3))
        self.assertIs(by_id["group-a-r2-m4"].winner_side, Side.B)
        self.assertTrue(all(r.tab == Tab.SWISS for r in results))

    def test_playoff_results(self):
        results = {r.match_id: r for r in parse_playoff_results(BOSTON_PAGE)}
        self.assertEqual(sorted(results), ["lb-r1-m1", "ub-qf-m1"])
        self.assertEqual(
            (results["lb-r1-m1"].winner_side, results["lb-r1-m1"].score_a, results["lb-r1-m1"].score_b),
            (Side.B, 3, 4),
        )

    def test_results_have_valid_scores(self):
        for result in parse_all_results(BOSTON_PAGE):
            self.assertGreaterEqual(result.score_a, 0)
            self.assertGreaterEqual(result.score_b, 0)
            self.assertNotEqual(result.score_a, result.score_b)
            self.assertIs(result.winner_side, resolve_winner_side(result.score_a, result.score_b))

    def test_extraction_is_idempotent(self):
        first = [r.model_dump_json() for r in parse_all_results(BOSTON_PAGE)]
        second = [r.model_dump_json() for r in parse_all_results(BOSTON_PAGE)]
        self.assertEqual(first, second)

    def test_empty_page(self):
        self.assertEqual(parse_all_results(""), [])


if __name__ == "__main__":
    unittest.main()
