"""
Unit tests for CV section parsing and recency decay.
"""

import unittest

from cvmatch.config import DATE_RANGE_PATTERNS, SECTION_HEADING_PATTERNS
from cvmatch.cv_parser import (
    create_cv_doc, extract_cv_sections, infer_sections_from_content, match_section_heading
)
from cvmatch.models import CvSections
from cvmatch.recency import calculate_recency_decay


SAMPLE_RESUME = """
Jane Doe
Berlin, Germany

EXPERIENCE
Backend Engineer at Acme, 2021 - Present
Built Python services on AWS.

SKILLS
Python, Django, PostgreSQL, Docker

PROJECTS
Open-source BM25 library

EDUCATION
BSc Computer Science, TU Berlin

LOCATION
Berlin
"""

UNSTRUCTURED_RESUME = """Senior developer at Initech building billing systems.

Python, SQL and Docker daily.

Bachelor of Science from State University.

I enjoy hiking."""


class TestSectionHeadings(unittest.TestCase):
    """Test heading detection, one section family at a time."""

    FAMILY_SAMPLES = {
        "experience": ["Work Experience", "BERUFSERFAHRUNG", "Employment History"],
        "skills": ["Technical Skills", "FÄHIGKEITEN", "Tech Stack"],
        "projects": ["Selected Projects", "Projekte"],
        "education": ["Education", "AUSBILDUNG", "Certifications"],
        "location": ["Current Location", "Wohnort"],
    }

    def test_each_family_matches_its_samples(self):
        for family, samples in self.FAMILY_SAMPLES.items():
            for sample in samples:
                with self.subTest(family=family, heading=sample):
                    self.assertTrue(any(p.match(sample) for p in SECTION_HEADING_PATTERNS[family]))
                    self.assertEqual(match_section_heading(sample), family)

    def test_markdown_and_colon_headings(self):
        self.assertEqual(match_section_heading("## Work Experience"), "experience")
        self.assertEqual(match_section_heading("Skills:"), "skills")
        self.assertEqual(match_section_heading("Skills & Tools"), "skills")

    def test_non_headings(self):
        self.assertIsNone(match_section_heading("Workshops"))
        self.assertIsNone(match_section_heading("Experience building distributed systems at scale for years"))
        self.assertIsNone(match_section_heading("experience with python"))
        self.assertIsNone(match_section_heading("Jane Doe"))
        self.assertIsNone(match_section_heading("Software Engineer"))
        self.assertIsNone(match_section_heading("Career Changer"))

    def test_role_title_stays_in_experience(self):
        """A title-case job title under EXPERIENCE does not open a new section."""
        text = "EXPERIENCE\nSoftware Engineer\nAcme 2021 - Present\nSKILLS\nPython"
        sections = extract_cv_sections(text)
        self.assertEqual(sections.experience, "Software Engineer\nAcme 2021 - Present")
        self.assertEqual(sections.skills, "Python")


class TestExtractSections(unittest.TestCase):
    """Test section extraction."""

    def test_sample_resume(self):
        sections = extract_cv_sections(SAMPLE_RESUME)
        self.assertEqual(
            sections.experience,
            "Backend Engineer at Acme, 2021 - Present\nBuilt Python services on AWS."
        )
        self.assertEqual(sections.skills, "Python, Django, PostgreSQL, Docker")
        self.assertEqual(sections.projects, "Open-source BM25 library")
        self.assertEqual(sections.education, "BSc Computer Science, TU Berlin")
        self.assertEqual(sections.location, "Berlin")

    def test_markdown_resume(self):
        text = "## Work Experience\n- Engineer 2020-2022\n\n## Skills:\n- Go, Rust"
        sections = extract_cv_sections(text)
        self.assertEqual(sections.experience, "- Engineer 2020-2022")
        self.assertEqual(sections.skills, "- Go, Rust")
        self.assertEqual(sections.projects, "")

    def test_first_heading_wins(self):
        text = "SKILLS\nPython\nEXPERIENCE\nEngineer\nSKILLS\nDocker"
        sections = extract_cv_sections(text)
        self.assertEqual(sections.skills, "Python")
        self.assertEqual(sections.experience, "Engineer\nSKILLS\nDocker")

    def test_empty_input(self):
        self.assertEqual(extract_cv_sections(""), CvSections())
        self.assertEqual(extract_cv_sections(None), CvSections())

    def test_paragraph_fallback(self):
        """Without headings, paragraphs are routed by content and unmatched ones dropped."""
        sections = extract_cv_sections(UNSTRUCTURED_RESUME)
        self.assertEqual(sections.experience, "Senior developer at Initech building billing systems.")
        self.assertEqual(sections.skills, "Python, SQL and Docker daily.")
        self.assertEqual(sections.education, "Bachelor of Science from State University.")
        self.assertEqual(sections.projects, "")
        self.assertEqual(sections.location, "")
        self.assertNotIn("hiking", sections.experience + sections.skills + sections.education)

    def test_fallback_joins_skill_paragraphs_with_commas(self):
        sections = infer_sections_from_content("Python and Docker\n\nAWS and Kubernetes")
        self.assertEqual(sections.skills, "Python and Docker, AWS and Kubernetes")

    def test_nothing_recognised(self):
        self.assertEqual(extract_cv_sections("Hello there.\n\nNothing relevant."), CvSections())

    def test_create_cv_doc(self):
        cv = create_cv_doc("cv-1", "Jane Doe", SAMPLE_RESUME, embedding=[0.1, 0.2], updated_at=1700000000.0)
        self.assertEqual(cv.id, "cv-1")
        self.assertEqual(cv.name, "Jane Doe")
        self.assertEqual(cv.text, SAMPLE_RESUME)
        self.assertEqual(cv.sections.skills, "Python, Django, PostgreSQL, Docker")
        self.assertEqual(cv.embedding, [0.1, 0.2])
        self.assertEqual(cv.updated_at, 1700000000.0)

    def test_create_cv_doc_sets_timestamp(self):
        cv = create_cv_doc("cv-2", "John", "SKILLS\nPython")
        self.assertIsNotNone(cv.updated_at)


class TestRecencyDecay(unittest.TestCase):
    """Test recency decay."""

    def test_present_is_recent(self):
        self.assertEqual(calculate_recency_decay("2024 - Present"), 1.0)
        self.assertEqual(calculate_recency_decay("Jan 2021 - Present", current_year=2025), 1.0)

    def test_old_experience(self):
        self.assertEqual(calculate_recency_decay("2018 - 2019", current_year=2025), 0.4)

    def test_moderate_experience(self):
        self.assertEqual(calculate_recency_decay("2015 - 2021", current_year=2025), 0.7)

    def test_boundaries(self):
        self.assertEqual(calculate_recency_decay("2020 - 2023", current_year=2025), 1.0)
        self.assertEqual(calculate_recency_decay("2015 - 2020", current_year=2025), 0.7)

    def test_uses_latest_end_year(self):
        text = "Engineer 2010 - 2012\nLead 2019 - 2023"
        self.assertEqual(calculate_recency_decay(text, current_year=2025), 1.0)

    def test_dash_variants(self):
        self.assertEqual(calculate_recency_decay("2018–2019", current_year=2025), 0.4)
        self.assertEqual(calculate_recency_decay("2023—now", current_year=2025), 1.0)

    def test_no_dates(self):
        self.assertEqual(calculate_recency_decay("Backend engineer at Acme"), 0.7)

    def test_no_experience(self):
        self.assertEqual(calculate_recency_decay(""), 0.4)
        self.assertEqual(calculate_recency_decay(None), 0.4)

    def test_date_pattern_families(self):
        samples = {
            "year_range": "2019 - current",
            "month_year_present": "March 2022 - present",
            "year_to_year": "2011-2014",
        }
        for family, text in samples.items():
            with self.subTest(family=family):
                self.assertIsNotNone(DATE_RANGE_PATTERNS[family].search(text))


if __name__ == "__main__":
    unittest.main()
