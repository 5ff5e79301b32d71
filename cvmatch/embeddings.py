"""
Dense similarity and the embedding client.

Embedding vectors come from an external, possibly slow provider. The client
puts a cache, a concurrency limit and a timeout in front of it; any failure
degrades to "no vector", which makes the dense term of the match score 0.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import threading
from collections import OrderedDict
from typing import Any, Callable, List, Optional, Protocol, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity

from .config import get_settings
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

EmbeddingProvider = Callable[[str], Sequence[float]]

_MAX_EMBED_TOKENS = 128


def as_vector(vec: Any) -> Optional[np.ndarray]:
    """
    Convert a candidate embedding to a 1-D float array.

    Returns None for missing, empty, nested, non-numeric or non-finite input.
    """
    if vec is None:
        return None
    try:
        arr = np.asarray(vec)
    except (TypeError, ValueError):
        return None
    if arr.ndim != 1 or arr.size == 0 or arr.dtype.kind not in "biuf":
        return None
    arr = arr.astype(float)
    if not np.all(np.isfinite(arr)):
        return None
    return arr


def cosine_similarity(vec1: Any, vec2: Any) -> float:
    """
    Cosine similarity between two embeddings, clamped to [0, 1].

    Malformed or mismatched vectors score exactly 0.0.
    """
    a = as_vector(vec1)
    b = as_vector(vec2)
    if a is None or b is None or a.shape != b.shape:
        return 0.0
    if not np.any(a) or not np.any(b):
        return 0.0

    similarity = float(sk_cosine_similarity(a.reshape(1, -1), b.reshape(1, -1))[0][0])
    if not math.isfinite(similarity):
        return 0.0
    return max(0.0, min(1.0, similarity))


def hash_embedding(text: Optional[str], dim: int = 384) -> List[float]:
    """
    Deterministic pseudo-embedding used when no model is available.

    Each token's SHA-256 digest seeds a sine pattern spread across all
    dimensions; the sum is L2-normalized. Empty text gives a zero vector.
    """
    vector = np.zeros(dim)
    tokens = tokenize(text)[:_MAX_EMBED_TOKENS]
    if not tokens:
        return vector.tolist()

    positions = np.arange(1, dim + 1)
    for i, token in enumerate(tokens):
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        seed = int.from_bytes(digest[:4], "big") / 2 ** 32 * 1000.0
        vector += np.sin(seed * positions + i) / len(tokens)

    norm = np.linalg.norm(vector)
    if norm > 0:
        vector = vector / norm
    return vector.tolist()


def _discard_late_result(call: asyncio.Future) -> None:
    # Provider calls that outlive their timeout finish unobserved
    if not call.cancelled():
        call.exception()


class EmbeddingCache(Protocol):
    """Anything that stores vectors keyed by the text they embed."""

    def get(self, key: str) -> Optional[List[float]]: ...

    def set(self, key: str, value: List[float]) -> None: ...

    def __contains__(self, key: object) -> bool: ...


class InMemoryEmbeddingCache:
    """Bounded, thread-safe FIFO cache."""

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size or get_settings().embedding_cache_size
        self._items: OrderedDict[str, List[float]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[float]]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: List[float]) -> None:
        with self._lock:
            if key not in self._items and len(self._items) >= self.max_size:
                self._items.popitem(last=False)
            self._items[key] = value

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        return len(self._items)


class EmbeddingClient:
    """
    Calls a blocking embedding provider with caching, bounded concurrency
    and a timeout.

    Args:
        provider: Callable mapping text to a vector
        cache: Optional EmbeddingCache
        max_concurrency: Maximum in-flight provider calls (defaults to settings)
        timeout_seconds: Per-call timeout (defaults to settings)
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: Optional[EmbeddingCache] = None,
        max_concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None
    ):
        settings = get_settings()
        self.provider = provider
        self.cache = cache
        self.max_concurrency = max_concurrency or settings.max_concurrent_embeddings
        self.timeout_seconds = timeout_seconds or settings.embedding_timeout_seconds
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._semaphore_loop: Optional[asyncio.AbstractEventLoop] = None

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Semaphore bound to the running loop, created on first use in that loop."""
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
            self._semaphore_loop = loop
        return self._semaphore

    async def _call_provider(self, text: str, semaphore: asyncio.Semaphore) -> Sequence[float]:
        # The slot is held until the provider thread returns, even after the caller timed out
        try:
            return await asyncio.to_thread(self.provider, text)
        finally:
            semaphore.release()

    async def embed(self, text: Optional[str]) -> Optional[List[float]]:
        """Embed text, or return None when the provider fails or times out."""
        if not text or not text.strip():
            return None

        if self.cache is not None and text in self.cache:
            return self.cache.get(text)

        semaphore = self._get_semaphore()
        await semaphore.acquire()
        call = asyncio.ensure_future(self._call_provider(text, semaphore))
        call.add_done_callback(_discard_late_result)
        try:
            raw = await asyncio.wait_for(asyncio.shield(call), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Embedding timed out after {self.timeout_seconds}s, using sparse scoring only")
            return None
        except Exception as e:
            logger.warning(f"Embedding provider failed: {e}, using sparse scoring only")
            return None

        vector = as_vector(raw)
        if vector is None:
            logger.warning("Embedding provider returned a malformed vector, ignoring it")
            return None

        result = vector.tolist()
        if self.cache is not None:
            self.cache.set(text, result)
        return result
