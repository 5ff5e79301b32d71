"""
CV Section Parser

Splits plain resume text into experience, skills, projects, education and
location sections using heading detection, with a paragraph-routing
fallback for resumes that have no recognisable headings.
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional

from .config import (
    SECTION_HEADING_PATTERNS, SECTION_CONTENT_PATTERNS, MAX_HEADING_LENGTH
)
from .models import CvDocument, CvSections

logger = logging.getLogger(__name__)

_MARKDOWN_HEADING = re.compile(r"^#{1,3}\s+")
_TITLE_CASE_HEADING = re.compile(r"^[A-Z][a-z]+(?:\s+(?:&|/|and|[A-Z][a-z]+))*$")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_LINE_SPLIT = re.compile(r"\r?\n")


def _heading_text(line: str) -> str:
    """Strip markdown markers and a trailing colon from a candidate heading."""
    return _MARKDOWN_HEADING.sub("", line).rstrip(":").strip()


def is_heading_like(line: str) -> bool:
    """
    Check whether a line looks like a section heading.

    A heading is short and either upper-case, title-case or a markdown
    heading (``#`` to ``###``).
    """
    if len(line) >= MAX_HEADING_LENGTH:
        return False
    if _MARKDOWN_HEADING.match(line):
        return True
    text = _heading_text(line)
    if not text:
        return False
    return text == text.upper() or bool(_TITLE_CASE_HEADING.match(text))


def match_section_heading(line: str) -> Optional[str]:
    """Return the section a heading line introduces, or None."""
    if not is_heading_like(line):
        return None
    text = _heading_text(line)
    for section_name, patterns in SECTION_HEADING_PATTERNS.items():
        if any(pattern.match(text) for pattern in patterns):
            return section_name
    return None


def extract_cv_sections(text: Optional[str]) -> CvSections:
    """
    Extract sections from CV text using heading patterns.

    Args:
        text: Full CV text

    Returns:
        CvSections; every field is an empty string when nothing is found
    """
    if not text or not isinstance(text, str):
        return CvSections()

    lines = _LINE_SPLIT.split(text)
    section_indices: Dict[str, int] = {}

    for i, raw_line in enumerate(lines):
        line = raw_line.strip()
        if len(line) < 3:
            continue
        section_name = match_section_heading(line)
        if section_name and section_name not in section_indices:
            section_indices[section_name] = i

    sorted_sections = sorted(section_indices.items(), key=lambda item: item[1])
    sections: Dict[str, str] = {}

    for position, (section_name, start_idx) in enumerate(sorted_sections):
        if position < len(sorted_sections) - 1:
            end_idx = sorted_sections[position + 1][1]
        else:
            end_idx = len(lines)
        section_lines = [line.strip() for line in lines[start_idx + 1:end_idx]]
        sections[section_name] = "\n".join(line for line in section_lines if line).strip()

    if not any(sections.values()):
        logger.debug("No section headings found, inferring sections from content")
        return infer_sections_from_content(text)

    logger.debug(f"Found sections: {[name for name, _ in sorted_sections]}")
    return CvSections(**sections)


def infer_sections_from_content(text: str) -> CvSections:
    """
    Route paragraphs into experience, skills or education by keyword family.

    Paragraphs matching no family are dropped.
    """
    buckets: Dict[str, List[str]] = {name: [] for name in SECTION_CONTENT_PATTERNS}

    for paragraph in _PARAGRAPH_SPLIT.split(text):
        for section_name, pattern in SECTION_CONTENT_PATTERNS.items():
            if pattern.search(paragraph):
                buckets[section_name].append(paragraph)
                break

    return CvSections(
        experience="\n\n".join(buckets["experience"]),
        skills=", ".join(buckets["skills"]),
        education="\n\n".join(buckets["education"]),
    )


def create_cv_doc(
    cv_id: str,
    name: str,
    text: str,
    embedding: Optional[Any] = None,
    updated_at: Optional[float] = None
) -> CvDocument:
    """Create a structured CV document from plain resume text."""
    return CvDocument(
        id=cv_id,
        name=name,
        text=text or "",
        sections=extract_cv_sections(text),
        embedding=embedding,
        updated_at=time.time() if updated_at is None else updated_at,
    )
