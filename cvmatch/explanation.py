"""
Explanation Generator

Builds the auditable part of a match result: shared keywords, the CV
sentences most relevant to the job, and the missing must-haves.
"""

import logging
import re
from collections import Counter
from typing import List

from .bm25 import BM25Index
from .config import EXPLANATION, KEYWORD_IMPORTANCE_BOOST
from .models import CvDocument, MatchExplanation, MustHaveCheck, SentenceMatch
from .scoring import normalize_bm25_score

logger = logging.getLogger(__name__)

_SENTENCE_SPLIT = re.compile(r"[.!?]\s+")


def split_sentences(text: str) -> List[str]:
    """Sentences longer than the minimum explanation length."""
    return [
        sentence for sentence in _SENTENCE_SPLIT.split(text or "")
        if len(sentence) > EXPLANATION["min_sentence_length"]
    ]


def extract_top_keywords(job_description: str, cv_doc: CvDocument, index: BM25Index) -> List[str]:
    """
    Rank terms shared by the job and the CV.

    Score = job frequency x CV frequency x IDF, doubled for technical terms.
    Ties keep the order in which terms first appear in the job text.
    """
    job_counts = Counter(index.tokenize(job_description))
    cv_counts = Counter(index.tokenize(cv_doc.full_text()))

    term_scores = []
    for term, job_freq in job_counts.items():
        cv_freq = cv_counts.get(term, 0)
        if not cv_freq:
            continue
        idf = index.idf.get(term) or 1.0
        boost = KEYWORD_IMPORTANCE_BOOST if term in index.important_keywords else 1.0
        term_scores.append((term, job_freq * cv_freq * idf * boost))

    term_scores.sort(key=lambda item: item[1], reverse=True)
    return [term for term, _ in term_scores[:EXPLANATION["max_keywords"]]]


def truncate_sentence(sentence: str) -> str:
    limit = EXPLANATION["max_sentence_chars"]
    if len(sentence) > limit:
        return sentence[:limit] + "..."
    return sentence


def extract_top_sentences(job_description: str, cv_doc: CvDocument, index: BM25Index) -> List[SentenceMatch]:
    """
    Find the CV sentences that best match any job sentence.

    Each CV sentence is scored by its best single-document BM25 score
    against the job sentences; only positive scores are kept.
    """
    job_sentences = split_sentences(job_description)
    scored = []

    for cv_sentence in split_sentences(cv_doc.full_text()):
        max_score = 0.0
        for job_sentence in job_sentences:
            score = index.score_query(job_sentence, cv_sentence)
            if score > max_score:
                max_score = score
        if max_score > 0:
            scored.append(SentenceMatch(
                text=truncate_sentence(cv_sentence),
                score=normalize_bm25_score(max_score),
            ))

    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[:EXPLANATION["max_sentences"]]


def generate_explanation(
    job_description: str,
    cv_doc: CvDocument,
    must_have_check: MustHaveCheck,
    index: BM25Index
) -> MatchExplanation:
    """Assemble the explanation for a single job/CV match."""
    explanation = MatchExplanation(
        matched_keywords=extract_top_keywords(job_description, cv_doc, index),
        missing_must_haves=list(must_have_check.missing),
        top_sentences=extract_top_sentences(job_description, cv_doc, index),
    )
    logger.debug(
        f"Explanation: {len(explanation.matched_keywords)} keywords, "
        f"{len(explanation.top_sentences)} sentences, "
        f"{len(explanation.missing_must_haves)} missing must-haves"
    )
    return explanation
