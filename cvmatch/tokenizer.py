"""
Tokenizer shared by the BM25 scorer and the explanation generator.
"""

import re
from typing import List, Optional

from .config import STOPWORDS

# Keep #, +, . and - so terms like c++, c#, node.js and ci-cd survive
_NON_TECH_PUNCTUATION = re.compile(r"[^\w\s#+.-]")
_LEADING_PUNCTUATION = re.compile(r"^[#+.-]+")
_TRAILING_PUNCTUATION = re.compile(r"[.-]+$")

MIN_TOKEN_LENGTH = 3


def clean_token(word: str) -> str:
    """Trim residual punctuation from the edges of a token."""
    word = _LEADING_PUNCTUATION.sub("", word)
    return _TRAILING_PUNCTUATION.sub("", word)


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split text into lowercase tokens.

    Tokens shorter than three characters and stopwords are dropped.
    Returns an empty list for empty or missing input.
    """
    if not text:
        return []

    cleaned = _NON_TECH_PUNCTUATION.sub(" ", text.lower())
    tokens = []
    for word in cleaned.split():
        word = clean_token(word)
        if len(word) >= MIN_TOKEN_LENGTH and word not in STOPWORDS:
            tokens.append(word)
    return tokens
