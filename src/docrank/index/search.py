"""Hybrid semantic / keyword search over the document index."""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from typing import Any, Dict, Iterable, List, Sequence

from docrank.embedding.encoder import EmbeddingGenerator, cosine_similarity
from docrank.index.storage import InMemoryDocumentIndex
from docrank.models import DocumentChunk, ScoredChunk, SearchRequest, SearchResult
from docrank.utils.text import count_occurrences, string_similarity

LOGGER = logging.getLogger(__name__)

TITLE_WEIGHT = 3.0
OCCURRENCE_WEIGHT = 1.0
FUZZY_WEIGHT = 0.5
TAG_WEIGHT = 2.0
FUZZY_LENGTH_WINDOW = 2
SIMILAR_THRESHOLD = 0.7
MIN_SUGGESTION_PREFIX = 2


def matches_filters(chunk: DocumentChunk, request: SearchRequest) -> bool:
    """Equality filters must all match; the tag filter is match-any."""
    if request.source is not None and request.source != chunk.source:
        return False
    if request.version is not None and request.version != chunk.version:
        return False
    if request.category is not None and request.category != chunk.category:
        return False
    if request.tags:
        if not chunk.tags:
            return False
        if not any(tag in chunk.tags for tag in request.tags):
            return False
    return True


def fuzzy_match(content: str, term: str) -> float:
    """Best similarity between ``term`` and any content word of comparable length."""
    best = 0.0
    low, high = len(term) - FUZZY_LENGTH_WINDOW, len(term) + FUZZY_LENGTH_WINDOW
    for word in content.split():
        if low <= len(word) <= high:
            best = max(best, string_similarity(word, term))
    return best


def keyword_score(chunk: DocumentChunk, terms: Sequence[str], fuzzy: bool = False) -> float:
    """Composite keyword relevance of ``chunk`` for lowercase query ``terms``."""
    terms = [term for term in terms if term.strip()]
    if not terms:
        return 0.0

    title = (chunk.title or "").lower()
    content = f"{chunk.title or ''} {chunk.content or ''}".lower()
    tags = [tag.lower() for tag in chunk.tags]
    length_norm = math.log(len(content) + 1)

    score = 0.0
    for term in terms:
        term_score = 0.0
        if term in title:
            term_score += TITLE_WEIGHT
        term_score += count_occurrences(content, term) * OCCURRENCE_WEIGHT
        if fuzzy:
            term_score += fuzzy_match(content, term) * FUZZY_WEIGHT
        term_score += sum(count_occurrences(tag, term) for tag in tags) * TAG_WEIGHT
        score += term_score / length_norm
    return score / len(terms)


def _rank(scored: Iterable[ScoredChunk]) -> List[ScoredChunk]:
    return sorted(scored, key=lambda item: (-item.relevance_score, item.id))


def deduplicate(scored: Iterable[ScoredChunk]) -> List[ScoredChunk]:
    """Keep one entry per chunk ID, the one with the higher score."""
    best: Dict[str, ScoredChunk] = {}
    for item in scored:
        current = best.get(item.id)
        if current is None or item.relevance_score > current.relevance_score:
            best[item.id] = item
    return list(best.values())


class SearchEngine:
    """High-level API to query the document index."""

    def __init__(
        self,
        index: InMemoryDocumentIndex,
        embedder: EmbeddingGenerator,
        *,
        similar_threshold: float = SIMILAR_THRESHOLD,
    ) -> None:
        self.index = index
        self.embedder = embedder
        self.similar_threshold = similar_threshold

    def candidates(self, request: SearchRequest) -> List[DocumentChunk]:
        return [chunk for chunk in self.index.get_all() if matches_filters(chunk, request)]

    def _semantic(self, request: SearchRequest, candidates: List[DocumentChunk]) -> List[ScoredChunk]:
        query_embedding = self.embedder.generate(request.query)
        results: List[ScoredChunk] = []
        for chunk in candidates:
            if chunk.embedding is None or chunk.embedding.size == 0:
                continue
            similarity = cosine_similarity(query_embedding, chunk.embedding)
            if similarity >= request.min_relevance_score:
                results.append(ScoredChunk(chunk, similarity))
        LOGGER.debug("Semantic search found %d results for query '%s'", len(results), request.query)
        return results

    def _keyword(self, request: SearchRequest, candidates: List[DocumentChunk]) -> List[ScoredChunk]:
        terms = request.query.lower().split()
        results: List[ScoredChunk] = []
        for chunk in candidates:
            score = keyword_score(chunk, terms, request.fuzzy_search)
            if score > 0.0 and score >= request.min_relevance_score:
                results.append(ScoredChunk(chunk, score))
        LOGGER.debug("Keyword search found %d results for query '%s'", len(results), request.query)
        return results

    def search(self, request: SearchRequest) -> SearchResult:
        if not request.is_valid():
            return SearchResult.empty(request.query)

        start = time.perf_counter()
        candidates = self.candidates(request)

        scored: List[ScoredChunk] = []
        if request.use_semantic:
            scored.extend(self._semantic(request, candidates))
        if request.keyword_search:
            scored.extend(self._keyword(request, candidates))

        if request.use_semantic and request.keyword_search:
            search_type = "hybrid"
        elif request.keyword_search:
            search_type = "keyword"
        else:
            search_type = "semantic"

        ranked = _rank(deduplicate(scored))[: request.max_results]
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        return SearchResult(
            query=request.query,
            results=ranked,
            total_results=len(ranked),
            search_time_ms=elapsed_ms,
            search_type=search_type,
        )

    def find_similar(self, document_id: str, max_results: int = 5) -> List[ScoredChunk]:
        """Chunks whose embeddings are close to the given chunk's, excluding itself."""
        target = self.index.get_by_id(document_id)
        if target is None or target.embedding is None or target.embedding.size == 0:
            return []

        similar: List[ScoredChunk] = []
        for chunk in self.index.get_all():
            if chunk.id == document_id or chunk.embedding is None:
                continue
            similarity = cosine_similarity(target.embedding, chunk.embedding)
            if similarity > self.similar_threshold:
                similar.append(ScoredChunk(chunk, similarity))
        return _rank(similar)[: max(max_results, 0)]

    def suggestions(self, partial_query: str, max_suggestions: int = 5) -> List[str]:
        """Autocomplete candidates drawn from chunk titles and tags."""
        if not partial_query or len(partial_query.strip()) < MIN_SUGGESTION_PREFIX:
            return []

        prefix = partial_query.strip().lower()
        found = set()
        for chunk in self.index.get_all():
            if chunk.title and any(
                word.startswith(prefix) and len(word) > len(prefix)
                for word in chunk.title.lower().split()
            ):
                found.add(chunk.title)
            for tag in chunk.tags:
                if prefix in tag.lower():
                    found.add(tag.replace("-", " "))
        return sorted(found)[: max(max_suggestions, 0)]

    def stats(self) -> Dict[str, Any]:
        chunks = self.index.get_all()
        by_source = Counter(chunk.source for chunk in chunks)
        by_category = Counter(chunk.category for chunk in chunks if chunk.category)
        with_embeddings = sum(
            1 for chunk in chunks if chunk.embedding is not None and chunk.embedding.size
        )
        return {
            "totalDocuments": len(chunks),
            "documentsWithEmbeddings": with_embeddings,
            "documentsBySource": dict(sorted(by_source.items())),
            "documentsByCategory": dict(sorted(by_category.items())),
        }
