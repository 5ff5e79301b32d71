"""
Hybrid Job-Resume Matching Engine

This package scores how well a resume fits a job posting:
1. Lexical relevance (BM25) and optional semantic relevance (embeddings)
2. Section-aware weighting with recency decay
3. Must-have gating, calibration and an auditable explanation

Usage:
    from cvmatch import create_cv_doc, match_job_to_cv

    cv = create_cv_doc("cv-1", "Jane Doe", resume_text)
    result = match_job_to_cv(job_description, cv)
    print(f"Match: {result.score:.2f}")
"""

from .cv_parser import create_cv_doc, extract_cv_sections
from .config import SCORE_WEIGHTS, SECTION_WEIGHTS
from .embeddings import EmbeddingClient, InMemoryEmbeddingCache, cosine_similarity, hash_embedding
from .matcher import best_cv_match, match_cvs_to_job, match_job_to_cv, match_many, score_label
from .models import CvDocument, CvSections, JobDocument, MatchExplanation, MatchResult, MustHaveSet
from .must_haves import check_must_haves, extract_must_haves

__all__ = [
    "match_job_to_cv",
    "match_cvs_to_job",
    "best_cv_match",
    "match_many",
    "score_label",
    "create_cv_doc",
    "extract_cv_sections",
    "extract_must_haves",
    "check_must_haves",
    "cosine_similarity",
    "hash_embedding",
    "EmbeddingClient",
    "InMemoryEmbeddingCache",
    "CvDocument",
    "CvSections",
    "JobDocument",
    "MatchExplanation",
    "MatchResult",
    "MustHaveSet",
    "SCORE_WEIGHTS",
    "SECTION_WEIGHTS",
]
__version__ = "1.0.0"
