"""
Locale pattern loading, reviewer attribution and YMYL topic matching.
"""

import json
import os
import tempfile
import unittest

from detection.patterns import (
    PatternDataError,
    build_pattern_set,
    clean_reviewer_name,
    find_reviewer_attribution,
    is_ymyl,
    load_pattern_set,
)


class TestReviewerAttribution(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.patterns = load_pattern_set(enabled=[])

    def test_german_attribution_keeps_umlauts_inside_words(self):
        match = find_reviewer_attribution("Medizinisch überprüft von Dr. Müller.", self.patterns)
        self.assertIsNotNone(match)
        self.assertEqual(match.locale, "de")
        self.assertEqual(match.name, "Dr. Müller")
        self.assertIn("überprüft von", match.raw_match)

    def test_decomposed_unicode_is_normalized(self):
        decomposed = "Medizinisch u\u0308berpru\u0308ft von Dr. Mu\u0308ller."
        match = find_reviewer_attribution(decomposed, self.patterns)
        self.assertIsNotNone(match)
        self.assertEqual(match.name, "Dr. Müller")

    def test_french_and_spanish(self):
        fr = find_reviewer_attribution("Révisé par Dr. Dubois.", self.patterns)
        es = find_reviewer_attribution("Revisado por Dr. García.", self.patterns)
        self.assertEqual((fr.locale, fr.name), ("fr", "Dr. Dubois"))
        self.assertEqual((es.locale, es.name), ("es", "Dr. García"))

    def test_longest_phrase_wins(self):
        match = find_reviewer_attribution("Medically reviewed by Jane Smith, MD on May 2.", self.patterns)
        self.assertEqual(match.phrase, "Medically reviewed by")
        self.assertEqual(match.name, "Jane Smith")

    def test_generic_and_empty_names_are_ignored(self):
        self.assertIsNone(find_reviewer_attribution("Reviewed by Staff.", self.patterns))
        self.assertIsNone(find_reviewer_attribution("Reviewed by our editorial team.", self.patterns))
        self.assertIsNone(find_reviewer_attribution("Reviewed by .", self.patterns))

    def test_phrase_must_start_a_word(self):
        self.assertIsNone(find_reviewer_attribution("Unverified by anyone", self.patterns))


class TestYmylTopics(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.patterns = load_pattern_set(enabled=[])

    def test_topics_in_each_locale(self):
        self.assertTrue(is_ymyl("Early symptoms of the flu", self.patterns))
        self.assertTrue(is_ymyl("Steuererklärung leicht gemacht", self.patterns))
        self.assertTrue(is_ymyl("Les symptômes de la grippe", self.patterns))
        self.assertTrue(is_ymyl("Consejos de salud para el verano", self.patterns))

    def test_whole_words_only(self):
        self.assertFalse(is_ymyl("Syntax highlighting for healthy-looking code", self.patterns))
        self.assertFalse(is_ymyl("Ten hiking trails near Denver", self.patterns))


class TestCleanReviewerName(unittest.TestCase):
    def test_stops_at_sentence_end(self):
        self.assertEqual(clean_reviewer_name("Dr. Müller. Weitere Infos"), "Dr. Müller")

    def test_keeps_initials(self):
        self.assertEqual(clean_reviewer_name("J. R. Smith"), "J. R. Smith")

    def test_stops_at_comma(self):
        self.assertEqual(clean_reviewer_name("Jane Smith, MD"), "Jane Smith")


class TestPatternLoading(unittest.TestCase):
    def test_default_file_ships_four_locales(self):
        patterns = load_pattern_set(enabled=[])
        self.assertEqual(set(patterns.locales), {"en", "de", "fr", "es"})
        self.assertTrue(patterns.originality)

    def test_locale_filter(self):
        patterns = load_pattern_set(enabled=["de"])
        self.assertEqual(patterns.locales, ("de",))
        self.assertIsNone(find_reviewer_attribution("Reviewed by Jane Smith.", patterns))

    def test_new_locale_is_data_only(self):
        entries = [{"locale": "it", "reviewer_phrases": ["revisionato da"]}]
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False, encoding="utf-8") as f:
            json.dump({"locales": entries}, f)
            path = f.name
        try:
            patterns = load_pattern_set(path=path, enabled=[])
        finally:
            os.unlink(path)
        match = find_reviewer_attribution("Revisionato da Dott. Rossi.", patterns)
        self.assertEqual(match.locale, "it")

    def test_unknown_locale_selection_fails(self):
        with self.assertRaises(PatternDataError):
            build_pattern_set([{"locale": "en"}], enabled=["xx"])

    def test_invalid_regex_is_reported(self):
        with self.assertRaises(PatternDataError):
            build_pattern_set([{"locale": "en", "perspective_headings": ["(unclosed"]}])

    def test_missing_file(self):
        with self.assertRaises(PatternDataError):
            load_pattern_set(path="/nonexistent/locales.json", enabled=[])


if __name__ == "__main__":
    unittest.main()
