"""
Must-Have Extractor and Checker

Pulls hard requirements (skills, language, location, clearance) out of a
job posting and checks a CV against them. A missing must-have caps the
final match score.
"""

import logging
import re
from typing import Dict, List, Optional, Pattern, Tuple

from .config import (
    MUST_HAVE_TECH_TERMS, REQUIREMENT_MARKER, REQUIRED_SKILL_PATTERNS,
    SKILL_FRAGMENT_SPLIT, SENTENCE_LIKE_FRAGMENT, LANGUAGE_PATTERNS,
    LOCATION_CAPTURE_PATTERN, LOCATION_MODE_PATTERNS, CLEARANCE_PATTERNS,
    SKILL_SYNONYMS
)
from .models import CvDocument, MustHaveCheck, MustHaveSet

logger = logging.getLogger(__name__)


def _build_term_patterns() -> Dict[str, Tuple[Pattern, Pattern]]:
    """Marker-before-term and term-before-marker patterns for each curated term."""
    patterns = {}
    for term in MUST_HAVE_TECH_TERMS:
        bounded = rf"((?<!\w){re.escape(term)}(?![\w+#]))"
        patterns[term] = (
            re.compile(rf"{REQUIREMENT_MARKER}.*?{bounded}", re.IGNORECASE),
            re.compile(rf"{bounded}.*?{REQUIREMENT_MARKER}", re.IGNORECASE),
        )
    return patterns


_TERM_PATTERNS = _build_term_patterns()


def extract_skills_from_text(text: str) -> List[str]:
    """
    Split a requirement fragment into individual skills.

    Parts shorter than 3 or longer than 49 characters, and parts that read
    like a sentence, are discarded.
    """
    skills = []
    for part in SKILL_FRAGMENT_SPLIT.split(text):
        trimmed = part.strip()
        if 2 < len(trimmed) < 50 and not SENTENCE_LIKE_FRAGMENT.match(trimmed):
            skills.append(trimmed)
    return skills


def extract_required_skills(text: str) -> List[str]:
    """
    Extract required skills from job text.

    Combines fragments following explicit requirement phrases with curated
    technical terms that share a line with a must/required/essential marker.
    Case-insensitively unique, in first-seen order.
    """
    skills: Dict[str, str] = {}

    def add(skill: str) -> None:
        skills.setdefault(skill.lower(), skill)

    for pattern in REQUIRED_SKILL_PATTERNS.values():
        for match in pattern.finditer(text):
            for skill in extract_skills_from_text(match.group(1).strip()):
                add(skill)

    for term, (marker_first, term_first) in _TERM_PATTERNS.items():
        match = marker_first.search(text) or term_first.search(text)
        if match:
            add(match.group(1))

    return list(skills.values())


def extract_language_requirement(text: str) -> Optional[str]:
    for pattern in LANGUAGE_PATTERNS.values():
        match = pattern.search(text)
        if match:
            language = match.group(1)
            level = match.group(2) if pattern.groups >= 2 else None
            return f"{language} {level}" if level else language
    return None


def extract_location_requirement(text: str) -> Optional[str]:
    match = LOCATION_CAPTURE_PATTERN.search(text)
    if match:
        location = match.group(1).strip(" ,")
        if location:
            return location

    for pattern in LOCATION_MODE_PATTERNS.values():
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def extract_clearance_requirements(text: str) -> List[str]:
    """First hit of every clearance family. Not deduplicated across families."""
    requirements = []
    for pattern in CLEARANCE_PATTERNS.values():
        match = pattern.search(text)
        if match:
            requirements.append(match.group(0))
    return requirements


def extract_must_haves(job_description: Optional[str]) -> MustHaveSet:
    """
    Extract must-have requirements from a job description.

    Args:
        job_description: Full job description text

    Returns:
        MustHaveSet; empty when the text is empty or has no requirements
    """
    if not job_description or not isinstance(job_description, str):
        return MustHaveSet()

    must_haves = MustHaveSet(
        required_skills=extract_required_skills(job_description),
        language=extract_language_requirement(job_description),
        location=extract_location_requirement(job_description),
        clearance=extract_clearance_requirements(job_description),
    )
    logger.debug(
        f"Must-haves: {len(must_haves.required_skills)} skills, "
        f"language={must_haves.language}, location={must_haves.location}, "
        f"{len(must_haves.clearance)} clearance"
    )
    return must_haves


def _has_skill(skill: str, cv_text: str, cv_skills: str) -> bool:
    skill_lower = skill.lower()
    if skill_lower in cv_text or skill_lower in cv_skills:
        return True
    return any(
        synonym in cv_text or synonym in cv_skills
        for synonym in SKILL_SYNONYMS.get(skill_lower, [])
    )


def check_must_haves(must_haves: MustHaveSet, cv_doc: CvDocument) -> MustHaveCheck:
    """
    Check whether a CV satisfies every must-have requirement.

    - Skills: substring of the CV text or skills section, or a known synonym
    - Language: only the first word of the requirement has to appear
    - Location: never enforced
    - Clearance: must appear verbatim

    Args:
        must_haves: Requirements extracted from the job
        cv_doc: Parsed CV

    Returns:
        MustHaveCheck with satisfied flag and human-readable missing items
    """
    missing = []
    cv_text = cv_doc.full_text().lower()
    cv_skills = (cv_doc.sections.skills or "").lower()

    for skill in must_haves.required_skills:
        if not _has_skill(skill, cv_text, cv_skills):
            missing.append(f"Required skill: {skill}")

    if must_haves.language:
        first_word = must_haves.language.lower().split(" ")[0]
        if first_word not in cv_text:
            missing.append(f"Language requirement: {must_haves.language}")

    if must_haves.location:
        logger.debug(f"Location requirement '{must_haves.location}' recorded, not enforced")

    for clearance in must_haves.clearance:
        if clearance.lower() not in cv_text:
            missing.append(f"Clearance requirement: {clearance}")

    if missing:
        logger.debug(f"Missing must-haves for CV {cv_doc.id}: {missing}")

    return MustHaveCheck(satisfied=not missing, missing=missing)
