"""Tests for application configuration."""

from __future__ import annotations

import pytest
import requests

from docrank.config import AppConfig, Services, build_services
from docrank.embedding.encoder import DEFAULT_DIMENSION, DEFAULT_MODEL, EmbeddingProvider
from docrank.samples import SAMPLE_DOCUMENTS

PAGE = (
    "<section><h2>Security Filters</h2>"
    "<p>Spring Security uses a chain of servlet filters to secure every HTTP request "
    "in your application.</p></section>"
    "<section><h2>Data Access</h2>"
    "<p>Spring Data JPA repositories remove boilerplate data access code from your "
    "persistence layer.</p></section>"
)


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.embedding_provider == "simple"
        assert config.embedding_dimension == DEFAULT_DIMENSION
        assert config.model_name == DEFAULT_MODEL
        assert config.min_content_chars == 50
        assert config.paragraph_chunk_chars == 1000
        assert config.paragraphs_per_chunk == 4
        assert config.similar_threshold == 0.7
        assert config.load_samples is True
        assert "spring-boot-3.x" in config.sources

    def test_sources_not_shared(self) -> None:
        """Each config gets its own source mapping."""
        first = AppConfig()
        first.sources["extra"] = "https://example.com"
        assert "extra" not in AppConfig().sources

    def test_embedding_config(self) -> None:
        config = AppConfig(embedding_provider="local", embedding_dimension=64)
        embedding = config.embedding_config()
        assert embedding.provider == "local"
        assert embedding.dimension == 64

    def test_invalid_dimension(self) -> None:
        with pytest.raises(ValueError):
            AppConfig(embedding_dimension=8).embedding_config()


class TestBuildServices:
    """Test build_services wiring."""

    def test_with_samples(self) -> None:
        """Sample documentation is indexed by default."""
        services = build_services()

        assert len(services.index) == len(SAMPLE_DOCUMENTS) == 5
        assert services.engine.index is services.index
        assert services.indexer.embedder is services.embedder
        assert services.embedder.provider is EmbeddingProvider.SIMPLE

    def test_without_samples(self) -> None:
        services = build_services(AppConfig(load_samples=False))
        assert len(services.index) == 0

    def test_settings_propagate(self) -> None:
        config = AppConfig(load_samples=False, similar_threshold=0.9, min_content_chars=10)
        services = build_services(config)
        assert services.engine.similar_threshold == 0.9
        assert services.indexer.min_content_chars == 10

    def test_samples_keep_explicit_categories(self) -> None:
        services = build_services()
        categories = sorted(chunk.category for chunk in services.index.get_all())
        assert categories == ["actuator", "configuration", "core", "repositories", "testing"]


def _services_with_sources() -> Services:
    config = AppConfig(
        load_samples=False,
        sources={"guide": "https://docs.example/guide", "broken": "https://bad.example/docs"},
    )
    services = build_services(config)

    def fetcher(url: str) -> str:
        if "bad" in url:
            raise requests.ConnectionError("refused")
        return PAGE

    services.indexer.fetcher = fetcher
    return services


class TestSourceManagement:
    """Test the source management operations on Services."""

    def test_select_sources(self) -> None:
        """None, empty and "all" select everything; unknown names are rejected."""
        services = _services_with_sources()
        assert services.select_sources(None) == services.config.sources
        assert services.select_sources(["all"]) == services.config.sources
        assert services.select_sources(["guide"]) == {"guide": "https://docs.example/guide"}
        with pytest.raises(ValueError, match="missing"):
            services.select_sources(["guide", "missing"])

    def test_update_sources(self) -> None:
        """Every configured source is fetched; failures are counted."""
        services = _services_with_sources()

        stats = services.update_sources()

        assert stats.ingested == 1
        assert stats.failed == 1
        assert stats.failed_sources == ["broken"]
        assert len(services.index.get_by_source("guide")) == 2

    def test_update_single_source(self) -> None:
        services = _services_with_sources()
        stats = services.update_sources(["guide"])
        assert stats.processed_sources == ["guide"]
        assert stats.chunks == 2

    def test_list_sources(self) -> None:
        """Configured and indexed sources are listed with chunk counts."""
        services = _services_with_sources()
        services.update_sources(["guide"])
        services.indexer.ingest_text("Notes", "spring boot notes", "local")

        listed = services.list_sources()

        assert listed == [
            {"name": "broken", "url": "https://bad.example/docs", "configured": True, "documentCount": 0},
            {"name": "guide", "url": "https://docs.example/guide", "configured": True, "documentCount": 2},
            {"name": "local", "url": None, "configured": False, "documentCount": 1},
        ]

    def test_clear_cache(self) -> None:
        """Embeddings are always dropped; the index only on request."""
        services = build_services()
        cached = services.embedder.cache_stats()["size"]

        assert services.clear_cache() == {"clearedEmbeddings": cached, "clearedDocuments": 0}
        assert services.embedder.cache_stats()["size"] == 0
        assert len(services.index) == 5

        assert services.clear_cache(clear_index=True) == {
            "clearedEmbeddings": 0,
            "clearedDocuments": 5,
        }
        assert len(services.index) == 0

    def test_status(self) -> None:
        services = build_services()
        status = services.status()
        assert status["serviceStatus"] == "active"
        assert status["embeddingsProvider"] == "simple"
        assert status["embeddingDimension"] == DEFAULT_DIMENSION
        assert status["index"]["total"] == 5
        assert "spring-boot-3.x" in status["configuredSources"]
