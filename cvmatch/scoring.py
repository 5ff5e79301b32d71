"""
Deterministic Scoring Engine

BM25 normalization, section-aware aggregation and score calibration.
All scoring functions are deterministic - same inputs produce same outputs.
"""

import logging
import math
from typing import Optional

from .bm25 import score_query
from .config import (
    SECTION_WEIGHTS, SKILLS_SECTION_BOOST, CALIBRATION, MUST_HAVE_PENALTY_THRESHOLD
)
from .models import CvDocument
from .recency import calculate_recency_decay

logger = logging.getLogger(__name__)


def clamp(score: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, score))


def normalize_bm25_score(bm25_score: float) -> float:
    """
    Map an unbounded raw BM25 score onto [0, 1].

    Formula (continuous, monotonic non-decreasing):
    - score <= 0: 0
    - 0 < score <= 5: 0.3 * sqrt(score / 5)
    - 5 < score <= 15: 0.3 + 0.4 * (score - 5) / 10
    - score > 15: min(1, 0.7 + 0.3 * ln(score - 14) / ln(20)), i.e. 1.0 from 34 upwards

    Args:
        bm25_score: Raw BM25 score

    Returns:
        Normalized score from 0-1
    """
    if bm25_score <= 0:
        return 0.0
    if bm25_score > 15:
        return min(1.0, 0.7 + (math.log(bm25_score - 14) / math.log(20)) * 0.3)
    if bm25_score > 5:
        return min(1.0, 0.3 + ((bm25_score - 5) / 10) * 0.4)
    return min(1.0, math.sqrt(bm25_score / 5) * 0.3)


def calibrate_score(score: float, satisfied: bool = True) -> float:
    """
    Reshape a blended [0, 1] score and apply must-have gating.

    Formula:
    - Clamp to [0, 1]
    - Above 0.1: score ** 0.9 (slight compression of the low end)
    - Within the good band 0.4-0.8: x 1.05, re-clamped
    - Unsatisfied must-haves: min(score, 0.35), a ceiling rather than a penalty

    Args:
        score: Blended score
        satisfied: Whether every must-have was found in the CV

    Returns:
        Calibrated score from 0-1
    """
    calibrated = clamp(score)

    if calibrated > CALIBRATION["power_threshold"]:
        calibrated = calibrated ** CALIBRATION["power"]

    band_low, band_high = CALIBRATION["good_band"]
    if band_low <= calibrated <= band_high:
        calibrated = min(1.0, calibrated * CALIBRATION["good_band_boost"])

    if not satisfied:
        calibrated = min(calibrated, MUST_HAVE_PENALTY_THRESHOLD)

    return clamp(calibrated)


def calculate_section_score(
    job_description: str,
    cv_doc: CvDocument,
    current_year: Optional[int] = None
) -> float:
    """
    Calculate the section-aware weighted score (0-1).

    Each non-empty section is scored with single-document BM25 and
    normalized. Experience is multiplied by recency decay, skills get a
    capped boost. The weighted sum is divided by the weights of the
    sections that are present, so missing sections neither help nor hurt.

    Args:
        job_description: Full job description text
        cv_doc: Parsed CV
        current_year: Year used for recency decay (defaults to today)

    Returns:
        Score from 0-1; 0 when the CV has no sections
    """
    sections = cv_doc.sections
    total_score = 0.0
    total_weight = 0.0

    if sections.experience:
        exp_score = normalize_bm25_score(score_query(job_description, sections.experience))
        recency = calculate_recency_decay(sections.experience, current_year)
        total_score += exp_score * recency * SECTION_WEIGHTS["experience"]
        total_weight += SECTION_WEIGHTS["experience"]
        logger.debug(f"Experience section: {exp_score:.4f} x recency {recency}")

    if sections.skills:
        skills_score = normalize_bm25_score(score_query(job_description, sections.skills))
        skills_score = min(1.0, skills_score * SKILLS_SECTION_BOOST)
        total_score += skills_score * SECTION_WEIGHTS["skills"]
        total_weight += SECTION_WEIGHTS["skills"]
        logger.debug(f"Skills section: {skills_score:.4f}")

    if sections.projects:
        projects_score = normalize_bm25_score(score_query(job_description, sections.projects))
        total_score += projects_score * SECTION_WEIGHTS["projects"]
        total_weight += SECTION_WEIGHTS["projects"]
        logger.debug(f"Projects section: {projects_score:.4f}")

    edu_loc_text = "\n".join(part for part in (sections.education, sections.location) if part)
    if edu_loc_text:
        edu_loc_score = normalize_bm25_score(score_query(job_description, edu_loc_text))
        total_score += edu_loc_score * SECTION_WEIGHTS["eduLoc"]
        total_weight += SECTION_WEIGHTS["eduLoc"]
        logger.debug(f"Education/location section: {edu_loc_score:.4f}")

    if total_weight == 0:
        return 0.0
    return total_score / total_weight
