"""Tests for the tolerant staff-identity matcher."""

from django.test import SimpleTestCase

from members_core.core.domain.services.match_engine import (
    derive_search_keys,
    email_fragments,
    is_email,
    matches,
    normalize,
    rank_candidate_tokens,
    tokenize,
)


class NormalizeTests(SimpleTestCase):
    def test_collapses_punctuation_and_case(self) -> None:
        self.assertEqual(normalize("  Baggins,   FRODO "), "baggins frodo")
        self.assertEqual(normalize("o'neil-smith"), "o neil smith")

    def test_none_is_empty(self) -> None:
        self.assertEqual(normalize(None), "")
        self.assertEqual(tokenize(None), [])

    def test_tokenize_drops_single_letters(self) -> None:
        self.assertEqual(tokenize("Frodo J. Baggins"), ["frodo", "baggins"])

    def test_is_email(self) -> None:
        self.assertTrue(is_email("frodo@shire.org"))
        self.assertFalse(is_email("@shire"))
        self.assertFalse(is_email("Frodo Baggins"))
        self.assertFalse(is_email(None))

    def test_email_fragments_ignore_short_parts(self) -> None:
        self.assertEqual(email_fragments("frodo.baggins+sw@shire.org"), ["frodo", "baggins"])
        self.assertEqual(email_fragments("f.baggins@shire.org"), ["baggins"])


class MatchesTests(SimpleTestCase):
    def test_empty_needle_never_matches(self) -> None:
        self.assertFalse(matches("", ["Frodo Baggins"]))
        self.assertFalse(matches(None, ["Frodo Baggins"]))
        self.assertFalse(matches("   ", ["Frodo Baggins"]))

    def test_no_candidates(self) -> None:
        self.assertFalse(matches("Frodo", None))
        self.assertFalse(matches("Frodo", []))
        self.assertFalse(matches("Frodo", [None, ""]))

    def test_id_field_equality(self) -> None:
        self.assertTrue(matches("SW-104", [], id_field="sw-104"))
        self.assertFalse(matches("SW-10", [], id_field="sw-104"))

    def test_raw_containment_is_case_insensitive(self) -> None:
        self.assertTrue(matches("frodo baggins", ["FRODO BAGGINS (MSW)"]))

    def test_normalized_containment(self) -> None:
        self.assertTrue(matches("frodo-baggins", ["Frodo Baggins"]))

    def test_last_first_order(self) -> None:
        self.assertTrue(matches("Baggins, Frodo", ["Frodo Baggins"]))
        self.assertTrue(matches("Frodo Baggins", ["Baggins, Frodo"]))

    def test_single_token_must_be_contained(self) -> None:
        self.assertTrue(matches("Baggins", ["Frodo Baggins"]))
        self.assertFalse(matches("Gamgee", ["Frodo Baggins"]))

    def test_email_against_stored_name(self) -> None:
        self.assertTrue(matches("frodo.baggins@shire.org", ["Frodo Baggins"]))
        self.assertFalse(matches("frodo.gamgee@shire.org", ["Frodo Baggins"]))

    def test_single_fragment_email(self) -> None:
        self.assertTrue(matches("baggins@shire.org", ["Frodo Baggins"]))

    def test_unrelated_names(self) -> None:
        self.assertFalse(matches("Samwise Gamgee", ["Frodo Baggins", "Bilbo Baggins"]))


class SearchKeyTests(SimpleTestCase):
    def test_name_fields(self) -> None:
        keys = derive_search_keys(["Frodo Baggins", None, ""])
        self.assertIn("frodo baggins", keys)
        self.assertIn("frodo", keys)
        self.assertIn("baggins", keys)

    def test_email_fields_skip_domain(self) -> None:
        keys = derive_search_keys(["frodo.baggins@shire.org"])
        self.assertIn("frodo.baggins@shire.org", keys)
        self.assertIn("frodo baggins", keys)
        self.assertIn("baggins", keys)
        self.assertNotIn("shire", keys)

    def test_rank_is_longest_first_and_limited(self) -> None:
        ranked = rank_candidate_tokens(["Frodo Baggins", "frodo@shire.org"], limit=3)
        self.assertEqual(len(ranked), 3)
        self.assertEqual(ranked[0], "frodo@shire.org")
        self.assertEqual(ranked, sorted(ranked, key=len, reverse=True))

    def test_rank_handles_blank_needles(self) -> None:
        self.assertEqual(rank_candidate_tokens([None, "", "  "]), [])
