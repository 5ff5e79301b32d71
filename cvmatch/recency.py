"""
Recency Decay

Discounts experience relevance by how long ago the most recent role ended.
"""

import logging
from datetime import date
from typing import Optional

from .config import DATE_RANGE_PATTERNS, PRESENT_TOKENS, RECENCY_DECAY

logger = logging.getLogger(__name__)


def find_most_recent_year(experience_text: str, current_year: int) -> int:
    """
    Latest end year of any date range in the text, or 0 when none is found.

    "Present"-like range ends count as the current year.
    """
    most_recent_year = 0
    for pattern in DATE_RANGE_PATTERNS.values():
        for match in pattern.finditer(experience_text):
            end = match.group(match.lastindex).lower()
            if end in PRESENT_TOKENS:
                year = current_year
            else:
                year = int(end)
            if year > most_recent_year:
                most_recent_year = year
    return most_recent_year


def calculate_recency_decay(
    experience_text: Optional[str],
    current_year: Optional[int] = None
) -> float:
    """
    Calculate the recency multiplier for an experience section.

    Mapping:
    - ended within 2 years (or ongoing): 1.0
    - ended within 5 years: 0.7
    - older: 0.4

    Args:
        experience_text: Experience section text
        current_year: Year to measure from (defaults to today)

    Returns:
        Multiplier in {1.0, 0.7, 0.4}; 0.7 when no dates are found,
        0.4 when there is no experience text at all
    """
    if not experience_text:
        return RECENCY_DECAY["no_experience"]

    if current_year is None:
        current_year = date.today().year

    most_recent_year = find_most_recent_year(experience_text, current_year)
    if most_recent_year == 0:
        logger.debug("No experience dates found, assuming moderate recency")
        return RECENCY_DECAY["no_dates"]

    years_ago = current_year - most_recent_year
    if years_ago <= RECENCY_DECAY["recent_years"]:
        decay = RECENCY_DECAY["recent"]
    elif years_ago <= RECENCY_DECAY["moderate_years"]:
        decay = RECENCY_DECAY["moderate"]
    else:
        decay = RECENCY_DECAY["old"]

    logger.debug(f"Most recent experience year {most_recent_year} ({years_ago}y ago), decay = {decay}")
    return decay
