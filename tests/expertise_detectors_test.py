"""
Expertise detectors X1-X4 and citation tiers.
"""

import unittest
from datetime import datetime, timezone

from detection import expertise
from detection.citations import CitationTier, citation_quality, classify_citation
from detection.models import DetectionContext
from detection.patterns import load_pattern_set
from extraction.models import Author, PageData

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

DIETITIAN = {
    "@type": "Person",
    "name": "Jane Smith",
    "jobTitle": "Registered Dietitian",
    "image": "https://example.com/jane.jpg",
    "sameAs": ["https://www.linkedin.com/in/janesmith"],
}


def page(**kwargs):
    kwargs.setdefault("url", "https://example.com/article")
    kwargs.setdefault("html", "")
    return PageData(**kwargs)


class DetectorTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.ctx = DetectionContext(patterns=load_pattern_set(enabled=[]), now=NOW)


class TestNamedAuthorsWithCredentials(DetectorTestCase):
    def test_person_schema_with_profile(self):
        evidence = expertise.detect_named_authors_with_credentials(page(json_ld_blocks=(DIETITIAN,)), self.ctx)
        # 1.5 name + 1 job title + 0.5 image + 1 sameAs
        self.assertAlmostEqual(evidence.confidence, 4 / 5)
        self.assertEqual(evidence.metadata["schema_people"], ["Jane Smith"])

    def test_reviewer_with_degree_in_name(self):
        blocks = ({"@type": "Article", "reviewedBy": {"@type": "Person", "name": "Anna Lee, MD"}},)
        evidence = expertise.detect_named_authors_with_credentials(page(json_ld_blocks=blocks), self.ctx)
        self.assertAlmostEqual(evidence.confidence, 2.5 / 5)
        self.assertEqual(evidence.metadata["reviewers"], ["Anna Lee, MD"])

    def test_generic_reviewer_is_ignored(self):
        blocks = ({"@type": "Article", "reviewedBy": "Editorial Team"},)
        evidence = expertise.detect_named_authors_with_credentials(page(json_ld_blocks=blocks), self.ctx)
        self.assertFalse(evidence.matched)

    def test_byline_authors(self):
        authors = (
            Author(name="Dr. Jane Smith", source="content"),
            Author(name="John Doe", source="schema", credentials="RD", url="https://example.com/team/john"),
        )
        evidence = expertise.detect_named_authors_with_credentials(page(authors=authors), self.ctx)
        # (0.5 + 1 for "Dr.") + (0.5 + 0.5 credentials + 1 profile url)
        self.assertAlmostEqual(evidence.confidence, 3.5 / 5)
        self.assertEqual(evidence.metadata["credential_signals"], 2)

    def test_score_is_capped(self):
        blocks = (DIETITIAN, {"@type": "Article", "reviewedBy": {"name": "Anna Lee, MD"}})
        evidence = expertise.detect_named_authors_with_credentials(page(json_ld_blocks=blocks), self.ctx)
        self.assertEqual(evidence.confidence, 1.0)
        self.assertEqual(evidence.metadata["uncapped_score"], 6.5)


class TestYmylReviewerPresence(DetectorTestCase):
    def test_other_topics_score_full_points(self):
        evidence = expertise.detect_ymyl_reviewer_presence(page(visible_text="Ten hiking trails near Denver."), self.ctx)
        self.assertEqual(evidence.confidence, 1.0)
        self.assertFalse(evidence.metadata["ymyl"])

    def test_text_reviewer_with_credential(self):
        text = "Diabetes symptoms explained. Medically reviewed by Anna Lee, MD."
        evidence = expertise.detect_ymyl_reviewer_presence(page(visible_text=text), self.ctx)
        self.assertAlmostEqual(evidence.confidence, 3 / 4)
        self.assertIn("Anna Lee", evidence.raw_match)
        self.assertEqual(evidence.metadata["credential"], "MD")

    def test_reviewer_label_and_schema(self):
        evidence = expertise.detect_ymyl_reviewer_presence(page(
            visible_text="Treatment options for back pain. Clinical reviewer: Sam Park",
            json_ld_blocks=({"@type": "MedicalWebPage", "reviewedBy": {"name": "Sam Park"}},),
        ), self.ctx)
        self.assertEqual(evidence.confidence, 1.0)

    def test_german_health_page_without_reviewer(self):
        evidence = expertise.detect_ymyl_reviewer_presence(
            page(visible_text="Gesundheit im Alltag: fünf einfache Tipps."), self.ctx)
        self.assertFalse(evidence.matched)
        self.assertTrue(evidence.metadata["ymyl"])


class TestCredentialVerificationLinks(DetectorTestCase):
    def test_professional_profiles_count(self):
        person = dict(DIETITIAN, sameAs=[
            "https://www.linkedin.com/in/janesmith",
            "https://orcid.org/0000-0002-1825-0097",
            "https://example.com/me",
            "https://med.stanford.edu/profiles/jane",
        ])
        evidence = expertise.detect_credential_verification_links(page(json_ld_blocks=(person,)), self.ctx)
        self.assertEqual(evidence.confidence, 1.0)
        self.assertNotIn("https://example.com/me", evidence.metadata["links"])

    def test_single_profile(self):
        evidence = expertise.detect_credential_verification_links(page(json_ld_blocks=(DIETITIAN,)), self.ctx)
        self.assertAlmostEqual(evidence.confidence, 1 / 3)

    def test_organization_same_as_does_not_count(self):
        org = {"@type": "Organization", "sameAs": ["https://www.linkedin.com/company/example"]}
        evidence = expertise.detect_credential_verification_links(page(json_ld_blocks=(org,)), self.ctx)
        self.assertFalse(evidence.matched)


class TestCitationQuality(DetectorTestCase):
    def test_peer_reviewed_citations_score_full(self):
        links = tuple(f"https://pubmed.ncbi.nlm.nih.gov/{i}" for i in range(5))
        evidence = expertise.detect_citation_quality(page(outbound_links=links), self.ctx)
        self.assertEqual(evidence.confidence, 1.0)
        self.assertEqual(evidence.metadata["quality_score"], 100)
        self.assertEqual(evidence.metadata["peer_reviewed"], 5)

    def test_mixed_sources(self):
        links = (
            "https://pubmed.ncbi.nlm.nih.gov/1",
            "https://www.cdc.gov/a",
            "https://www.reuters.com/b",
            "https://blog.example.org/c",
        )
        evidence = expertise.detect_citation_quality(page(outbound_links=links), self.ctx)
        # quality 57 < 60, but four citations -> 3 points
        self.assertAlmostEqual(evidence.confidence, 3 / 4)

    def test_few_ordinary_links(self):
        links = ("https://blog.example.org/a", "https://shop.example.net/b")
        evidence = expertise.detect_citation_quality(page(outbound_links=links), self.ctx)
        self.assertAlmostEqual(evidence.confidence, 1 / 4)

    def test_no_citations(self):
        evidence = expertise.detect_citation_quality(page(), self.ctx)
        self.assertEqual(evidence.reason, "noCitations")


class TestCitationTiers(unittest.TestCase):
    def test_classification(self):
        self.assertEqual(classify_citation("https://www.cdc.gov/flu"), CitationTier.PEER_REVIEWED)
        self.assertEqual(classify_citation("https://data.census.gov/table"), CitationTier.GOVERNMENT_EDU)
        self.assertEqual(classify_citation("https://www.ox.ac.uk/research"), CitationTier.GOVERNMENT_EDU)
        self.assertEqual(classify_citation("https://www.reuters.com/world"), CitationTier.REPUTABLE_NEWS)
        self.assertEqual(classify_citation("https://notnature.com/article"), CitationTier.OTHER)

    def test_quality_breakdown(self):
        quality = citation_quality([
            "https://pubmed.ncbi.nlm.nih.gov/1",
            "https://www.cdc.gov/a",
            "https://www.reuters.com/b",
            "https://blog.example.org/c",
        ])
        self.assertEqual(quality.total, 4)
        # (3 + 3 + 1.5 + 1) / 15
        self.assertEqual(quality.quality_score, 57)
        self.assertEqual(quality.breakdown, {"tier1": 2, "tier2": 0, "tier3": 1, "tier4": 1})
        self.assertEqual(quality.top_sources,
                         ("pubmed.ncbi.nlm.nih.gov", "cdc.gov", "reuters.com", "blog.example.org"))

    def test_empty(self):
        self.assertEqual(citation_quality([]).quality_score, 0)


if __name__ == "__main__":
    unittest.main()
