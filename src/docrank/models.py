"""Core docrank data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping

import numpy as np


@dataclass(slots=True)
class DocumentChunk:
    """One indexed unit of documentation: text, provenance, features and embedding."""

    id: str
    title: str
    content: str
    url: str
    source: str
    checksum: str
    version: str | None = None
    category: str = "core"
    tags: List[str] = field(default_factory=list)
    code_snippets: List[str] = field(default_factory=list)
    configuration_examples: List[str] = field(default_factory=list)
    embedding: np.ndarray | None = None
    embedding_dimension: int = 0
    word_count: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def content_preview(self, max_length: int = 150) -> str:
        if not self.content:
            return ""
        if len(self.content) <= max_length:
            return self.content
        return self.content[:max_length] + "..."

    def to_dict(
        self, *, include_embedding: bool = False, include_code_snippets: bool = True
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "source": self.source,
            "version": self.version,
            "category": self.category,
            "tags": list(self.tags),
            "checksum": self.checksum,
            "embeddingDimension": self.embedding_dimension,
            "wordCount": self.word_count,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at.isoformat(),
        }
        if include_code_snippets:
            data["codeSnippets"] = list(self.code_snippets)
            data["configurationExamples"] = list(self.configuration_examples)
        if include_embedding:
            data["embedding"] = [] if self.embedding is None else self.embedding.tolist()
        return data


@dataclass(frozen=True, slots=True)
class ScoredChunk:
    """A chunk annotated with its relevance for a single query.

    The wrapped chunk is the instance held by the index and must not be mutated.
    """

    chunk: DocumentChunk
    relevance_score: float

    @property
    def id(self) -> str:
        return self.chunk.id

    def to_dict(self, *, include_code_snippets: bool = True) -> Dict[str, Any]:
        data = self.chunk.to_dict(include_code_snippets=include_code_snippets)
        data["relevanceScore"] = self.relevance_score
        return data


_REQUEST_KEYS = {
    "query": "query",
    "semanticSearch": "semantic_search",
    "keywordSearch": "keyword_search",
    "fuzzySearch": "fuzzy_search",
    "source": "source",
    "version": "version",
    "category": "category",
    "tags": "tags",
    "minRelevanceScore": "min_relevance_score",
    "maxResults": "max_results",
    "includeCodeSnippets": "include_code_snippets",
}


@dataclass(slots=True)
class SearchRequest:
    """Query string, search switches and candidate filters."""

    query: str
    semantic_search: bool = False
    keyword_search: bool = False
    fuzzy_search: bool = False
    source: str | None = None
    version: str | None = None
    category: str | None = None
    tags: List[str] | None = None
    min_relevance_score: float = 0.0
    max_results: int = 10
    include_code_snippets: bool = True

    @property
    def use_semantic(self) -> bool:
        """Semantic scoring runs when requested or when no mode was requested."""
        return self.semantic_search or not self.keyword_search

    def is_valid(self) -> bool:
        return bool(self.query and self.query.strip()) and self.max_results > 0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SearchRequest":
        """Build a request from camelCase or snake_case keys, ignoring unknown ones."""
        kwargs: Dict[str, Any] = {}
        for key, value in payload.items():
            name = _REQUEST_KEYS.get(key, key)
            if name in _REQUEST_KEYS.values() and value is not None:
                kwargs[name] = value
        kwargs.setdefault("query", "")
        return cls(**kwargs)


@dataclass(slots=True)
class SearchResult:
    """Ranked chunks returned for one query."""

    query: str
    results: List[ScoredChunk] = field(default_factory=list)
    total_results: int = 0
    search_time_ms: float = 0.0
    search_type: str | None = None

    @classmethod
    def empty(cls, query: str) -> "SearchResult":
        return cls(query=query)

    @property
    def top_result(self) -> ScoredChunk | None:
        return self.results[0] if self.results else None

    @property
    def has_results(self) -> bool:
        return bool(self.results)

    def relevant_results(self, min_score: float) -> List[ScoredChunk]:
        return [item for item in self.results if item.relevance_score >= min_score]

    def results_from_source(self, source: str) -> List[ScoredChunk]:
        return [item for item in self.results if item.chunk.source == source]

    def to_dict(self, *, include_code_snippets: bool = True) -> Dict[str, Any]:
        return {
            "query": self.query,
            "results": [
                item.to_dict(include_code_snippets=include_code_snippets)
                for item in self.results
            ],
            "totalResults": self.total_results,
            "searchTimeMs": self.search_time_ms,
            "searchType": self.search_type,
        }
