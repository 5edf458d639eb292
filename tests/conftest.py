"""Shared fixtures."""

from __future__ import annotations

import pytest

from docrank.embedding.encoder import EmbeddingGenerator
from docrank.index.indexer import Indexer
from docrank.index.search import SearchEngine
from docrank.index.storage import InMemoryDocumentIndex


@pytest.fixture
def embedder() -> EmbeddingGenerator:
    return EmbeddingGenerator()


@pytest.fixture
def index() -> InMemoryDocumentIndex:
    return InMemoryDocumentIndex()


@pytest.fixture
def indexer(embedder: EmbeddingGenerator, index: InMemoryDocumentIndex) -> Indexer:
    return Indexer(embedder, index)


@pytest.fixture
def engine(embedder: EmbeddingGenerator, index: InMemoryDocumentIndex) -> SearchEngine:
    return SearchEngine(index, embedder)
