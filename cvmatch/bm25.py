"""
BM25 Scorer

Lexical relevance over a small, per-call corpus. Indexes are ephemeral:
build one per comparison and throw it away.
"""

import logging
import math
from collections import Counter
from typing import Dict, List, Optional, Sequence, Set

from .config import (
    BM25_PARAMS, TECH_TERM_IDF_BOOST, STOPWORDS,
    TECH_TERM_PATTERNS, CAPITALIZED_TERM_PATTERN, TECHNICAL_SYNONYMS
)
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


def extract_important_keywords(text: Optional[str]) -> Set[str]:
    """
    Collect the technical vocabulary of a text.

    Includes every hit of the technical pattern families (expanded with
    their synonyms) and capitalized word runs such as product names.
    """
    keywords: Set[str] = set()
    if not text:
        return keywords

    for pattern in TECH_TERM_PATTERNS.values():
        for match in pattern.finditer(text):
            cleaned = match.group(0).lower().strip()
            if len(cleaned) <= 2:
                continue
            keywords.add(cleaned)
            for key, synonyms in TECHNICAL_SYNONYMS.items():
                if cleaned == key or cleaned in synonyms:
                    keywords.add(key)
                    keywords.update(synonyms)

    for match in CAPITALIZED_TERM_PATTERN.finditer(text):
        cleaned = match.group(0).lower().strip()
        if len(cleaned) > 3 and cleaned not in STOPWORDS:
            keywords.add(cleaned)

    return keywords


class BM25Index:
    """BM25 index over a handful of documents."""

    def __init__(
        self,
        documents: Sequence[str],
        k1: float = BM25_PARAMS["k1"],
        b: float = BM25_PARAMS["b"]
    ):
        self.k1 = k1
        self.b = b
        self.documents: List[List[str]] = [tokenize(doc) for doc in documents]
        total_length = sum(len(doc) for doc in self.documents)
        self.avg_doc_length = (total_length / len(self.documents) if self.documents else 0) or 1
        self.important_keywords = extract_important_keywords(
            " ".join(doc for doc in documents if doc)
        )
        self.idf = self._calculate_idf()

    def tokenize(self, text: Optional[str]) -> List[str]:
        return tokenize(text)

    def _calculate_idf(self) -> Dict[str, float]:
        doc_freq: Counter = Counter()
        for doc in self.documents:
            doc_freq.update(set(doc))

        total_docs = len(self.documents)
        idf = {}
        for term, df in doc_freq.items():
            value = math.log((total_docs + 1) / (df + 0.5))
            if term in self.important_keywords:
                value *= TECH_TERM_IDF_BOOST
            idf[term] = value
        return idf

    def score(self, query: Optional[str], doc_index: int) -> float:
        """Raw BM25 score of the query against one indexed document."""
        doc = self.documents[doc_index]
        doc_length = len(doc)
        if doc_length == 0:
            return 0.0

        term_freq = Counter(doc)
        length_norm = 1 - self.b + self.b * (doc_length / self.avg_doc_length)

        score = 0.0
        for term in tokenize(query):
            idf = self.idf.get(term)
            if not idf:
                continue
            tf = term_freq.get(term, 0)
            score += (idf * tf * (self.k1 + 1)) / (tf + self.k1 * length_norm)
        return score

    def score_query(self, query: Optional[str], doc_text: Optional[str]) -> float:
        """
        Score a query against a single text.

        A temporary one-document index is built so the result depends
        only on that text, never on the rest of this index's corpus.
        """
        temp_index = BM25Index([doc_text or ""], self.k1, self.b)
        return temp_index.score(query, 0)


def score_query(query: Optional[str], doc_text: Optional[str]) -> float:
    """Module-level shortcut for BM25Index.score_query with default parameters."""
    return BM25Index([doc_text or ""]).score(query, 0)
