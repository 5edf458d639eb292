"""Embedding generation and vector similarity."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np

from docrank.utils.text import count_occurrences, sha256_text

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_DIMENSION = 50

KEYWORDS: tuple[str, ...] = (
    "spring",
    "boot",
    "security",
    "data",
    "web",
    "controller",
    "service",
    "repository",
    "configuration",
    "bean",
)
CODE_PATTERNS: tuple[str, ...] = ("@", "public", "class", "import", "new")
# (token, divisor) pairs; these counts are not capped.
STRUCTURAL_SCALES: tuple[tuple[str, float], ...] = (
    ("{", 20.0),
    ("(", 30.0),
    (".", 100.0),
    (";", 50.0),
    ("\n", 100.0),
)
# Domain vocabulary filling the slots after the structural features.
TERM_FEATURES: tuple[str, ...] = (
    "jwt",
    "authentication",
    "authorization",
    "oauth",
    "token",
    "password",
    "filter",
    "session",
    "jpa",
    "hibernate",
    "entity",
    "query",
    "transaction",
    "rest",
    "http",
    "request",
    "response",
    "mvc",
    "actuator",
    "endpoint",
    "metrics",
    "health",
    "test",
    "mock",
    "yaml",
    "properties",
    "profile",
    "kafka",
    "cache",
)
FEATURE_COUNT = (
    1 + len(KEYWORDS) + len(CODE_PATTERNS) + len(STRUCTURAL_SCALES) + len(TERM_FEATURES)
)

logger = logging.getLogger(__name__)


def _frozen(vector: np.ndarray) -> np.ndarray:
    vector.setflags(write=False)
    return vector


EMPTY_VECTOR = _frozen(np.zeros(0, dtype="float64"))


class EmbeddingProvider(str, Enum):
    """Available embedding strategies.

    Only ``SIMPLE`` is guaranteed to work everywhere; the others fall back to it
    when they cannot be used.
    """

    SIMPLE = "simple"
    LOCAL = "local"
    OPENAI = "openai"

    @classmethod
    def resolve(cls, name: "EmbeddingProvider | str | None") -> "EmbeddingProvider":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name or "").strip().lower())
        except ValueError:
            logger.warning(
                "Unknown embeddings provider '%s', falling back to simple embeddings", name
            )
            return cls.SIMPLE


@dataclass(slots=True)
class EmbeddingConfig:
    provider: EmbeddingProvider | str = EmbeddingProvider.SIMPLE
    dimension: int = DEFAULT_DIMENSION
    model_name: str = DEFAULT_MODEL
    device: str | None = None

    def __post_init__(self) -> None:
        if self.dimension < FEATURE_COUNT:
            raise ValueError(
                f"Embedding dimension must be at least {FEATURE_COUNT}, got {self.dimension}"
            )


def normalize_vector(vector: np.ndarray) -> np.ndarray:
    """Scale to unit length; a zero vector is returned unchanged."""
    magnitude = float(np.linalg.norm(vector))
    if magnitude == 0.0:
        return vector
    return vector / magnitude


def simple_embedding(text: str, dimension: int = DEFAULT_DIMENSION) -> np.ndarray:
    """Deterministic hand-built feature vector for ``text``."""
    normalized = text.lower().strip()
    features: List[float] = [len(normalized) / 1000.0]
    features.extend(
        min(count_occurrences(normalized, keyword) / 100.0, 1.0) for keyword in KEYWORDS
    )
    features.extend(
        min(count_occurrences(normalized, pattern) / 50.0, 1.0) for pattern in CODE_PATTERNS
    )
    features.extend(
        count_occurrences(normalized, token) / scale for token, scale in STRUCTURAL_SCALES
    )
    features.extend(
        min(count_occurrences(normalized, term) / 10.0, 1.0) for term in TERM_FEATURES
    )

    vector = np.zeros(dimension, dtype="float64")
    vector[: len(features)] = features
    return normalize_vector(vector)


def cosine_similarity(first: Sequence[float] | None, second: Sequence[float] | None) -> float:
    """Cosine of the angle between two vectors.

    Missing, empty, differently sized or zero-magnitude inputs give 0.0.
    """
    if first is None or second is None:
        return 0.0
    a = np.asarray(first, dtype="float64")
    b = np.asarray(second, dtype="float64")
    if a.size == 0 or a.shape != b.shape:
        return 0.0
    denominator = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(a, b) / denominator)


def _load_sentence_transformer(config: EmbeddingConfig) -> Any:
    from sentence_transformers import SentenceTransformer

    return SentenceTransformer(config.model_name, device=config.device)


class EmbeddingGenerator:
    """Maps text to fixed-dimension normalized vectors, cached by SHA-256 of the text.

    Features:
    - ``simple`` provider: deterministic keyword/code/structure features
    - ``local`` provider: sentence-transformers model, if installed and loadable
    - ``openai`` provider: not available offline, uses ``simple``
    - Thread-safe, unbounded, process-lifetime cache
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        self.provider = EmbeddingProvider.resolve(self.config.provider)
        self._model: Any = None
        self._lock = threading.Lock()
        self._cache: Dict[str, np.ndarray] = {}
        self.hits = 0
        self.misses = 0

        if self.provider is EmbeddingProvider.OPENAI:
            logger.info("OpenAI embeddings not implemented yet, falling back to simple embeddings")
            self.provider = EmbeddingProvider.SIMPLE
        elif self.provider is EmbeddingProvider.LOCAL:
            try:
                self._model = _load_sentence_transformer(self.config)
            except Exception as e:
                logger.warning(
                    "Failed to load local embeddings model '%s': %s. Falling back to simple embeddings.",
                    self.config.model_name,
                    e,
                )
                self.provider = EmbeddingProvider.SIMPLE

        if self._model is not None:
            self.dimension = int(self._model.get_sentence_embedding_dimension())
        else:
            self.dimension = self.config.dimension
        logger.info("Embeddings provider: %s | Dimension: %d", self.provider.value, self.dimension)

    def _compute(self, text: str) -> np.ndarray:
        if self._model is not None:
            encoded = self._model.encode(
                [text],
                show_progress_bar=False,
                convert_to_numpy=True,
                normalize_embeddings=True,
            )
            return normalize_vector(np.asarray(encoded[0], dtype="float64"))
        return simple_embedding(text, self.dimension)

    def generate(self, text: str | None) -> np.ndarray:
        """Return the embedding for ``text``; blank text yields an empty vector."""
        if text is None or not text.strip():
            return EMPTY_VECTOR

        key = sha256_text(text)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self.hits += 1
                logger.debug("Retrieved embeddings from cache for text hash: %s", key)
                return cached

        vector = _frozen(np.array(self._compute(text), dtype="float64"))
        with self._lock:
            self.misses += 1
            stored = self._cache.setdefault(key, vector)

        logger.debug(
            "Generated embeddings with dimension %d for text of length %d", vector.size, len(text)
        )
        return stored

    def embed(self, texts: Iterable[str]) -> List[np.ndarray]:
        return [self.generate(text) for text in texts]

    def similarity(self, first: Sequence[float] | None, second: Sequence[float] | None) -> float:
        return cosine_similarity(first, second)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.info("Embeddings cache cleared")

    def cache_stats(self) -> Dict[str, int]:
        with self._lock:
            return {"size": len(self._cache), "hits": self.hits, "misses": self.misses}
