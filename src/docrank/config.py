"""Application configuration defaults and service wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from docrank.embedding.encoder import (
    DEFAULT_DIMENSION,
    DEFAULT_MODEL,
    EmbeddingConfig,
    EmbeddingGenerator,
)
from docrank.index.indexer import Indexer, IngestStats
from docrank.index.search import SIMILAR_THRESHOLD, SearchEngine
from docrank.index.storage import InMemoryDocumentIndex
from docrank.samples import load_sample_documentation

LOGGER = logging.getLogger(__name__)


def _default_sources() -> Dict[str, str]:
    return {
        "spring-boot-3.x": "https://docs.spring.io/spring-boot/docs/current/reference/html/",
        "spring-boot-2.x": "https://docs.spring.io/spring-boot/docs/2.7.x/reference/html/",
        "spring-security-6.x": "https://docs.spring.io/spring-security/reference/",
        "spring-security-5.x": "https://docs.spring.io/spring-security/site/docs/5.8.x/reference/html5/",
        "spring-data-3.x": "https://docs.spring.io/spring-data/jpa/docs/current/reference/html/",
        "spring-data-2.x": "https://docs.spring.io/spring-data/jpa/docs/2.7.x/reference/html/",
    }


@dataclass(slots=True)
class AppConfig:
    embedding_provider: str = "simple"
    embedding_dimension: int = DEFAULT_DIMENSION
    model_name: str = DEFAULT_MODEL
    min_content_chars: int = 50
    paragraph_chunk_chars: int = 1000
    paragraphs_per_chunk: int = 4
    min_paragraph_chunk_chars: int = 100
    similar_threshold: float = SIMILAR_THRESHOLD
    max_results: int = 10
    fetch_timeout: float = 20.0
    load_samples: bool = True
    sources: Dict[str, str] = field(default_factory=_default_sources)

    def embedding_config(self) -> EmbeddingConfig:
        return EmbeddingConfig(
            provider=self.embedding_provider,
            dimension=self.embedding_dimension,
            model_name=self.model_name,
        )


@dataclass(slots=True)
class Services:
    """One configured index together with the components that read and write it."""

    config: AppConfig
    embedder: EmbeddingGenerator
    index: InMemoryDocumentIndex
    indexer: Indexer
    engine: SearchEngine

    def select_sources(self, names: Iterable[str] | None = None) -> Dict[str, str]:
        """Configured sources by name; ``None``, empty or ``"all"`` selects every one."""
        wanted = [name for name in names or [] if name != "all"]
        if not wanted:
            return dict(self.config.sources)
        unknown = sorted(set(wanted) - set(self.config.sources))
        if unknown:
            raise ValueError(f"Unknown documentation source(s): {', '.join(unknown)}")
        return {name: self.config.sources[name] for name in wanted}

    def update_sources(self, names: Iterable[str] | None = None) -> IngestStats:
        """Fetch and re-index configured sources. A failing source never stops the rest."""
        selected = self.select_sources(names)
        LOGGER.info("Updating %d documentation sources", len(selected))
        stats = self.indexer.ingest_sources(selected)
        LOGGER.info(
            "Documentation update finished: %d ingested, %d failed, %d chunks",
            stats.ingested,
            stats.failed,
            stats.chunks,
        )
        return stats

    def list_sources(self) -> List[Dict[str, Any]]:
        """Configured and indexed sources with their chunk counts."""
        names = sorted(set(self.config.sources) | set(self.index.stats()["by_source"]))
        return [
            {
                "name": name,
                "url": self.config.sources.get(name),
                "configured": name in self.config.sources,
                "documentCount": len(self.index.get_by_source(name)),
            }
            for name in names
        ]

    def clear_cache(self, *, clear_index: bool = False) -> Dict[str, int]:
        """Drop cached embeddings, and optionally every indexed chunk."""
        embeddings = self.embedder.cache_stats()["size"]
        self.embedder.clear_cache()
        documents = 0
        if clear_index:
            documents = len(self.index)
            self.index.clear()
            LOGGER.info("Cleared %d indexed documents", documents)
        return {"clearedEmbeddings": embeddings, "clearedDocuments": documents}

    def status(self) -> Dict[str, Any]:
        return {
            "serviceStatus": "active",
            "embeddingsProvider": self.embedder.provider.value,
            "embeddingDimension": self.embedder.dimension,
            "configuredSources": sorted(self.config.sources),
            "index": self.index.stats(),
            "embeddingsCache": self.embedder.cache_stats(),
        }


def build_services(config: AppConfig | None = None) -> Services:
    """Construct the embedder, index, indexer and search engine for ``config``."""
    config = config or AppConfig()
    embedder = EmbeddingGenerator(config.embedding_config())
    index = InMemoryDocumentIndex()
    indexer = Indexer(
        embedder,
        index,
        fetch_timeout=config.fetch_timeout,
        min_content_chars=config.min_content_chars,
        paragraph_chunk_chars=config.paragraph_chunk_chars,
        paragraphs_per_chunk=config.paragraphs_per_chunk,
        min_paragraph_chunk_chars=config.min_paragraph_chunk_chars,
    )
    engine = SearchEngine(index, embedder, similar_threshold=config.similar_threshold)
    if config.load_samples:
        load_sample_documentation(indexer)
    return Services(
        config=config, embedder=embedder, index=index, indexer=indexer, engine=engine
    )
