"""
Main Matcher Module

Orchestrates the complete matching process:
1. Check must-have requirements
2. Score lexical (BM25), semantic (embeddings) and section-aware relevance
3. Blend, gate and calibrate the score
4. Return the score with its explanation
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .bm25 import BM25Index
from .config import (
    SCORE_WEIGHTS, MIN_SCORE_THRESHOLD, MIN_JOB_TEXT_LENGTH, MIN_CV_TEXT_LENGTH,
    SCORE_THRESHOLDS, LOWEST_SCORE_LABEL, get_settings
)
from .embeddings import EmbeddingClient, cosine_similarity
from .explanation import generate_explanation
from .models import CvDocument, JobDocument, MatchExplanation, MatchResult, MustHaveSet
from .must_haves import check_must_haves, extract_must_haves
from .scoring import calculate_section_score, calibrate_score, normalize_bm25_score

logger = logging.getLogger(__name__)


def _empty_result(cv_id: Optional[str] = None) -> MatchResult:
    return MatchResult(score=0.0, explanation=MatchExplanation(), cv_id=cv_id)


def match_job_to_cv(
    job_description: Union[str, JobDocument],
    cv_doc: CvDocument,
    must_haves: Optional[MustHaveSet] = None,
    job_embedding: Optional[Any] = None,
    cv_embedding: Optional[Any] = None,
    current_year: Optional[int] = None
) -> MatchResult:
    """
    Match a job description against a CV using hybrid scoring.

    This is the main entry point for the matching engine. It is a pure
    function: identical inputs always produce an identical result.

    Args:
        job_description: Full job description text
        cv_doc: Parsed CV document
        must_haves: Requirements to gate on (extracted from the job if None)
        job_embedding: Optional job vector
        cv_embedding: Optional CV vector (falls back to cv_doc.embedding)
        current_year: Year used for recency decay (defaults to today)

    Returns:
        MatchResult with score in [0, 1] and explanation

    Example:
        >>> result = match_job_to_cv(job_text, create_cv_doc("cv-1", "Jane", resume_text))
        >>> print(f"Match: {result.score:.2f}, missing: {result.explanation.missing_must_haves}")
    """
    if isinstance(job_description, JobDocument):
        if job_embedding is None:
            job_embedding = job_description.embedding
        job_description = job_description.text

    cv_text = cv_doc.full_text()
    if not job_description or not job_description.strip() or not cv_text.strip():
        logger.debug(f"Empty job or CV text for CV {cv_doc.id}, score = 0")
        return _empty_result(cv_doc.id)

    if must_haves is None:
        must_haves = extract_must_haves(job_description)

    # Step 1: Must-have gate
    must_have_check = check_must_haves(must_haves, cv_doc)

    # Step 2: Sparse BM25 score
    index = BM25Index([job_description, cv_text])
    sparse_score = normalize_bm25_score(index.score_query(job_description, cv_text))

    # Step 3: Dense embedding score
    if cv_embedding is None:
        cv_embedding = cv_doc.embedding
    dense_score = 0.0
    if job_embedding is not None and cv_embedding is not None:
        dense_score = cosine_similarity(job_embedding, cv_embedding)

    # Step 4: Section-aware score
    section_score = calculate_section_score(job_description, cv_doc, current_year)

    # Step 5: Blend, gate and calibrate
    blended = (
        SCORE_WEIGHTS["dense"] * dense_score +
        SCORE_WEIGHTS["sparse"] * sparse_score +
        SCORE_WEIGHTS["section"] * section_score
    )
    final_score = calibrate_score(blended, must_have_check.satisfied)

    logger.debug(
        f"CV {cv_doc.id}: dense={dense_score:.4f}, sparse={sparse_score:.4f}, "
        f"section={section_score:.4f}, blended={blended:.4f}"
    )

    # Step 6: Explanation
    explanation = generate_explanation(job_description, cv_doc, must_have_check, index)

    logger.info(
        f"Match CV {cv_doc.id}: {final_score:.4f} "
        f"({'satisfied' if must_have_check.satisfied else 'must-haves missing'})"
    )
    return MatchResult(score=final_score, explanation=explanation, cv_id=cv_doc.id)


def _valid_cvs(cv_docs: Sequence[CvDocument]) -> List[CvDocument]:
    valid = []
    for cv_doc in cv_docs:
        if cv_doc is None:
            continue
        if len(cv_doc.full_text().strip()) < MIN_CV_TEXT_LENGTH:
            logger.info(f"Skipping CV {cv_doc.id} - text too short")
            continue
        valid.append(cv_doc)
    return valid


def _rank(results: List[MatchResult]) -> List[MatchResult]:
    return sorted(results, key=lambda result: result.score, reverse=True)


def match_cvs_to_job(
    job_description: str,
    cv_docs: Sequence[CvDocument],
    job_embedding: Optional[Any] = None,
    cv_embeddings: Optional[Dict[str, Any]] = None,
    current_year: Optional[int] = None
) -> List[MatchResult]:
    """
    Match one job against several CVs.

    Must-haves are extracted once for the job. A CV that fails to match is
    logged and scored 0 instead of aborting the batch.

    Args:
        job_description: Full job description text
        cv_docs: Parsed CVs
        job_embedding: Optional job vector
        cv_embeddings: Optional CV vectors keyed by CV id
        current_year: Year used for recency decay

    Returns:
        List of match results, sorted by score (highest first)
    """
    cv_embeddings = cv_embeddings or {}
    valid = _valid_cvs(cv_docs)
    logger.info(f"Matching job against {len(valid)} of {len(cv_docs)} CVs")

    must_haves = extract_must_haves(job_description)
    results = []
    for cv_doc in valid:
        try:
            results.append(match_job_to_cv(
                job_description,
                cv_doc,
                must_haves,
                job_embedding,
                cv_embeddings.get(cv_doc.id),
                current_year
            ))
        except Exception as e:
            logger.error(f"Failed to match CV {cv_doc.id}: {e}", exc_info=True)
            results.append(_empty_result(cv_doc.id))

    ranked = _rank(results)
    if ranked:
        logger.info(f"Top match: CV {ranked[0].cv_id} with {ranked[0].score:.4f}")
    return ranked


def best_cv_match(
    job_description: str,
    cv_docs: Sequence[CvDocument],
    job_embedding: Optional[Any] = None,
    cv_embeddings: Optional[Dict[str, Any]] = None,
    current_year: Optional[int] = None
) -> Optional[MatchResult]:
    """
    Pick the CV that best fits a job.

    Returns None when the job text is too short, no CV is usable, or the
    best score is below MIN_SCORE_THRESHOLD.
    """
    if not job_description or len(job_description.strip()) < MIN_JOB_TEXT_LENGTH:
        logger.info("Job description too short for matching")
        return None

    ranked = match_cvs_to_job(job_description, cv_docs, job_embedding, cv_embeddings, current_year)
    if not ranked:
        logger.info("No valid CVs to match")
        return None

    best = ranked[0]
    if best.score < MIN_SCORE_THRESHOLD:
        logger.info(f"Best score {best.score:.4f} below threshold {MIN_SCORE_THRESHOLD}, excluding job")
        return None
    return best


def score_label(score: float) -> str:
    """Human-readable band for a match score."""
    for threshold, label in SCORE_THRESHOLDS:
        if score >= threshold:
            return label
    return LOWEST_SCORE_LABEL


async def match_many(
    job_description: str,
    cv_docs: Sequence[CvDocument],
    embedding_client: Optional[EmbeddingClient] = None,
    max_workers: Optional[int] = None,
    current_year: Optional[int] = None
) -> List[MatchResult]:
    """
    Match one job against many CVs concurrently.

    Matches run in worker threads, bounded by max_workers. When an
    embedding client is given, job and CV vectors are fetched through it;
    a failed or timed-out embedding only drops the dense term.

    Args:
        job_description: Full job description text
        cv_docs: Parsed CVs
        embedding_client: Optional EmbeddingClient
        max_workers: Maximum concurrent matches (defaults to settings)
        current_year: Year used for recency decay

    Returns:
        List of match results, sorted by score (highest first)
    """
    semaphore = asyncio.Semaphore(max_workers or get_settings().max_match_workers)
    valid = _valid_cvs(cv_docs)
    logger.info(f"Matching job against {len(valid)} CVs concurrently")

    must_haves = extract_must_haves(job_description)
    job_embedding = None
    if embedding_client is not None:
        job_embedding = await embedding_client.embed(job_description)

    async def match_one(cv_doc: CvDocument) -> MatchResult:
        cv_embedding = cv_doc.embedding
        if cv_embedding is None and job_embedding is not None:
            cv_embedding = await embedding_client.embed(cv_doc.full_text())

        async with semaphore:
            try:
                return await asyncio.to_thread(
                    match_job_to_cv,
                    job_description,
                    cv_doc,
                    must_haves,
                    job_embedding,
                    cv_embedding,
                    current_year
                )
            except Exception as e:
                logger.error(f"Failed to match CV {cv_doc.id}: {e}", exc_info=True)
                return _empty_result(cv_doc.id)

    results = await asyncio.gather(*(match_one(cv_doc) for cv_doc in valid))
    return _rank(list(results))
