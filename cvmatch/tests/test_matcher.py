"""
Unit tests for the hybrid job-resume matching system.
"""

import logging
import unittest
from unittest import mock

from cvmatch import (
    EmbeddingClient, JobDocument, best_cv_match, create_cv_doc, hash_embedding,
    match_cvs_to_job, match_job_to_cv, match_many, score_label
)
from cvmatch.explanation import truncate_sentence
from cvmatch.models import CvDocument, CvSections

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


# Sample data
SAMPLE_JOB_DESCRIPTION = "Senior Backend Engineer. Required: Python, PostgreSQL, AWS. 5+ years."

STRONG_RESUME = """
Jane Doe

EXPERIENCE
Senior Backend Engineer at Acme, 2021 - Present
Built Python services on AWS with PostgreSQL.

SKILLS
Python, PostgreSQL, AWS, Docker
"""

PARTIAL_RESUME = "Python developer with PostgreSQL and Docker experience."

WEAK_RESUME = "Marketing manager focused on brand campaigns and social media."

UNRELATED_RESUME = "Gardening and cooking enthusiast with a big dog."

CURRENT_YEAR = 2025


class TestMatchJobToCv(unittest.TestCase):
    """Test single job/CV matching."""

    def setUp(self):
        self.strong = create_cv_doc("strong", "Jane Doe", STRONG_RESUME)
        self.partial = create_cv_doc("partial", "John Roe", PARTIAL_RESUME)

    def test_missing_must_have_caps_score(self):
        """A CV without AWS is capped and the gap is reported."""
        result = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, self.partial, current_year=CURRENT_YEAR)

        self.assertLessEqual(result.score, 0.35)
        self.assertFalse(result.satisfied)
        self.assertEqual(result.explanation.missing_must_haves, ["Required skill: AWS"])
        self.assertEqual(result.explanation.matched_keywords, ["python", "postgresql"])
        self.assertEqual(len(result.explanation.top_sentences), 1)
        self.assertEqual(result.explanation.top_sentences[0].text, PARTIAL_RESUME)
        self.assertEqual(result.cv_id, "partial")

    def test_sections_only_cv(self):
        """A CV that carries parsed sections but no raw text is still matched and gated."""
        cv = CvDocument(
            id="sections-only",
            sections=CvSections(
                skills="Python, Django, PostgreSQL, Docker",
                experience="2019-Present: Backend Engineer at Acme building Python services",
            ),
        )
        result = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, cv, current_year=CURRENT_YEAR)

        self.assertFalse(result.satisfied)
        self.assertEqual(result.explanation.missing_must_haves, ["Required skill: AWS"])
        self.assertGreater(result.score, 0.0)
        self.assertLessEqual(result.score, 0.35)
        self.assertIn("python", result.explanation.matched_keywords)

    def test_gate_holds_even_with_perfect_embeddings(self):
        job = "Rust is a must for this role. Systems programming with low latency."
        without_rust = CvDocument(id="a", text="Systems programming with low latency in C and Python.")
        with_rust = CvDocument(id="b", text="Systems programming with low latency in Rust and Python.")
        vector = [1.0, 0.0, 0.0]

        gated = match_job_to_cv(job, without_rust, job_embedding=vector, cv_embedding=vector)
        self.assertEqual(gated.score, 0.35)
        self.assertEqual(gated.explanation.missing_must_haves, ["Required skill: Rust"])

        passed = match_job_to_cv(job, with_rust, job_embedding=vector, cv_embedding=vector)
        self.assertGreater(passed.score, 0.35)
        self.assertTrue(passed.satisfied)

    def test_strong_resume(self):
        result = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, self.strong, current_year=CURRENT_YEAR)
        self.assertTrue(result.satisfied)
        self.assertGreater(result.score, 0)
        self.assertIn("python", result.explanation.matched_keywords)
        self.assertIn("aws", result.explanation.matched_keywords)

    def test_empty_inputs(self):
        empty_cv = CvDocument(id="empty", text="")
        for job, cv in [("", self.strong), ("   \n", self.strong), (SAMPLE_JOB_DESCRIPTION, empty_cv)]:
            with self.subTest(job=job, cv=cv.id):
                result = match_job_to_cv(job, cv)
                self.assertEqual(result.score, 0.0)
                self.assertEqual(result.explanation.matched_keywords, [])
                self.assertEqual(result.explanation.missing_must_haves, [])
                self.assertEqual(result.explanation.top_sentences, [])

    def test_deterministic(self):
        first = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, self.strong, current_year=CURRENT_YEAR)
        second = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, self.strong, current_year=CURRENT_YEAR)
        self.assertEqual(first, second)

    def test_job_document_input(self):
        vector = hash_embedding(SAMPLE_JOB_DESCRIPTION)
        cv_vector = hash_embedding(STRONG_RESUME)
        cv = create_cv_doc("strong", "Jane Doe", STRONG_RESUME, embedding=cv_vector)

        from_document = match_job_to_cv(
            JobDocument(text=SAMPLE_JOB_DESCRIPTION, embedding=vector), cv, current_year=CURRENT_YEAR
        )
        from_text = match_job_to_cv(
            SAMPLE_JOB_DESCRIPTION, cv, job_embedding=vector, cv_embedding=cv_vector, current_year=CURRENT_YEAR
        )
        self.assertEqual(from_document, from_text)

    def test_malformed_embeddings_are_ignored(self):
        baseline = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, self.strong, current_year=CURRENT_YEAR)
        malformed = match_job_to_cv(
            SAMPLE_JOB_DESCRIPTION, self.strong,
            job_embedding=[float("nan"), 1.0], cv_embedding=[1.0, 1.0],
            current_year=CURRENT_YEAR
        )
        mismatched = match_job_to_cv(
            SAMPLE_JOB_DESCRIPTION, self.strong,
            job_embedding=[1.0, 1.0], cv_embedding=[1.0, 1.0, 1.0],
            current_year=CURRENT_YEAR
        )
        self.assertEqual(malformed.score, baseline.score)
        self.assertEqual(mismatched.score, baseline.score)

    def test_embeddings_raise_score(self):
        vector = [0.3, 0.4, 0.5]
        without = match_job_to_cv(SAMPLE_JOB_DESCRIPTION, self.strong, current_year=CURRENT_YEAR)
        with_vectors = match_job_to_cv(
            SAMPLE_JOB_DESCRIPTION, self.strong,
            job_embedding=vector, cv_embedding=vector, current_year=CURRENT_YEAR
        )
        self.assertGreater(with_vectors.score, without.score)

    def test_explanation_limits(self):
        terms = [
            "python", "django", "flask", "docker", "kubernetes", "terraform", "ansible",
            "postgresql", "redis", "kafka", "spark", "airflow", "pandas", "numpy",
            "react", "angular", "graphql", "jenkins", "linux", "golang",
        ]
        job = "We work with " + ", ".join(terms) + ". Everything runs on linux servers in production."
        resume = (
            "Built python and django services for many years. "
            "Ran docker and kubernetes clusters with terraform and ansible. "
            "Tuned postgresql and redis behind kafka consumers. "
            "Wrote spark and airflow jobs using pandas and numpy. "
            "Shipped react and angular frontends over graphql with jenkins on linux. "
            "Maintained golang tooling for " + "python " * 40 + "pipelines."
        )
        cv = CvDocument(id="many", text=resume)
        explanation = match_job_to_cv(job, cv).explanation

        self.assertEqual(len(explanation.matched_keywords), 15)
        self.assertEqual(len(explanation.top_sentences), 3)
        for sentence in explanation.top_sentences:
            self.assertLessEqual(len(sentence.text), 153)
            self.assertGreaterEqual(sentence.score, 0.0)
            self.assertLessEqual(sentence.score, 1.0)
        scores = [sentence.score for sentence in explanation.top_sentences]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_truncate_sentence(self):
        self.assertEqual(truncate_sentence("x" * 200), "x" * 150 + "...")
        self.assertEqual(truncate_sentence("short sentence"), "short sentence")


class TestBatchMatching(unittest.TestCase):
    """Test one job against several CVs."""

    def setUp(self):
        self.cvs = [
            create_cv_doc("weak", "Sam", WEAK_RESUME),
            create_cv_doc("strong", "Jane Doe", STRONG_RESUME),
            create_cv_doc("short", "Tiny", "Hi"),
            create_cv_doc("partial", "John Roe", PARTIAL_RESUME),
        ]

    def test_ranked_and_short_cvs_skipped(self):
        results = match_cvs_to_job(SAMPLE_JOB_DESCRIPTION, self.cvs, current_year=CURRENT_YEAR)
        self.assertEqual([r.cv_id for r in results][0], "strong")
        self.assertNotIn("short", [r.cv_id for r in results])
        self.assertEqual(len(results), 3)
        scores = [r.score for r in results]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_failure_is_isolated(self):
        real_match = match_job_to_cv

        def flaky(job, cv_doc, *args):
            if cv_doc.id == "partial":
                raise RuntimeError("boom")
            return real_match(job, cv_doc, *args)

        with mock.patch("cvmatch.matcher.match_job_to_cv", side_effect=flaky):
            with self.assertLogs("cvmatch.matcher", level="ERROR"):
                results = match_cvs_to_job(SAMPLE_JOB_DESCRIPTION, self.cvs, current_year=CURRENT_YEAR)

        by_id = {r.cv_id: r for r in results}
        self.assertEqual(by_id["partial"].score, 0.0)
        self.assertGreater(by_id["strong"].score, 0.0)

    def test_best_cv_match(self):
        best = best_cv_match(SAMPLE_JOB_DESCRIPTION, self.cvs, current_year=CURRENT_YEAR)
        self.assertIsNotNone(best)
        self.assertEqual(best.cv_id, "strong")

    def test_best_cv_match_rejects(self):
        self.assertIsNone(best_cv_match("Dev", self.cvs))
        self.assertIsNone(best_cv_match(SAMPLE_JOB_DESCRIPTION, []))
        self.assertIsNone(best_cv_match(SAMPLE_JOB_DESCRIPTION, [create_cv_doc("short", "Tiny", "Hi")]))

        unrelated = [create_cv_doc("unrelated", "Pat", UNRELATED_RESUME)]
        self.assertIsNone(best_cv_match(SAMPLE_JOB_DESCRIPTION, unrelated))

    def test_score_label(self):
        cases = [
            (0.85, "Excellent"), (0.70, "Excellent"), (0.55, "Good"),
            (0.30, "Moderate"), (0.10, "Weak"), (0.05, "Very poor"), (0.0, "Very poor"),
        ]
        for score, label in cases:
            with self.subTest(score=score):
                self.assertEqual(score_label(score), label)


class TestMatchMany(unittest.IsolatedAsyncioTestCase):
    """Test concurrent matching."""

    def setUp(self):
        self.cvs = [
            create_cv_doc("weak", "Sam", WEAK_RESUME),
            create_cv_doc("strong", "Jane Doe", STRONG_RESUME),
            create_cv_doc("partial", "John Roe", PARTIAL_RESUME),
        ]

    async def test_without_embeddings(self):
        results = await match_many(SAMPLE_JOB_DESCRIPTION, self.cvs, max_workers=2, current_year=CURRENT_YEAR)
        expected = match_cvs_to_job(SAMPLE_JOB_DESCRIPTION, self.cvs, current_year=CURRENT_YEAR)
        self.assertEqual(
            {r.cv_id: r.score for r in results},
            {r.cv_id: r.score for r in expected}
        )

    async def test_with_embedding_client(self):
        client = EmbeddingClient(hash_embedding, max_concurrency=2)
        results = await match_many(SAMPLE_JOB_DESCRIPTION, self.cvs, embedding_client=client, current_year=CURRENT_YEAR)

        expected = match_cvs_to_job(
            SAMPLE_JOB_DESCRIPTION, self.cvs,
            job_embedding=hash_embedding(SAMPLE_JOB_DESCRIPTION),
            cv_embeddings={cv.id: hash_embedding(cv.text) for cv in self.cvs},
            current_year=CURRENT_YEAR
        )
        expected_scores = {r.cv_id: r.score for r in expected}
        for result in results:
            self.assertAlmostEqual(result.score, expected_scores[result.cv_id])
        self.assertEqual(len(results), 3)

    async def test_failing_provider_falls_back_to_sparse(self):
        def provider(text):
            raise RuntimeError("provider down")

        client = EmbeddingClient(provider)
        results = await match_many(SAMPLE_JOB_DESCRIPTION, self.cvs, embedding_client=client, current_year=CURRENT_YEAR)
        expected = match_cvs_to_job(SAMPLE_JOB_DESCRIPTION, self.cvs, current_year=CURRENT_YEAR)
        self.assertEqual(
            {r.cv_id: r.score for r in results},
            {r.cv_id: r.score for r in expected}
        )


if __name__ == "__main__":
    unittest.main()
