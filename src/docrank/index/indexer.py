"""Documentation ingestion pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Mapping

import requests

from docrank.embedding.encoder import EmbeddingGenerator
from docrank.index.storage import InMemoryDocumentIndex
from docrank.ingestion.features import extract_features
from docrank.ingestion.html_loader import PageSection, fetch_page, parse_page
from docrank.models import DocumentChunk
from docrank.utils.text import content_fingerprint, word_count

LOGGER = logging.getLogger(__name__)

CHECKSUM_PREFIX = 8

PageFetcher = Callable[[str], str]


class IngestionError(RuntimeError):
    """Raised when a documentation source cannot be retrieved."""


def is_url(value: str) -> bool:
    return value.strip().lower().startswith(("http://", "https://"))


def chunk_id(source: str, checksum: str) -> str:
    return f"{source}-{checksum[:CHECKSUM_PREFIX]}"


@dataclass(slots=True)
class IngestStats:
    ingested: int = 0
    failed: int = 0
    chunks: int = 0
    processed_sources: list[str] = field(default_factory=list)
    failed_sources: list[str] = field(default_factory=list)

    def increment(self, source: str, chunk_count: int | None) -> None:
        """Record one source; ``None`` marks a failure."""
        if chunk_count is None:
            self.failed += 1
            self.failed_sources.append(source)
        else:
            self.ingested += 1
            self.chunks += chunk_count
        self.processed_sources.append(source)

    def to_dict(self) -> dict[str, object]:
        return {
            "ingested": self.ingested,
            "failed": self.failed,
            "chunks": self.chunks,
            "processedSources": list(self.processed_sources),
            "failedSources": list(self.failed_sources),
        }


class Indexer:
    """Turns raw pages into enriched chunks and writes them to the index."""

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        index: InMemoryDocumentIndex,
        *,
        fetcher: PageFetcher | None = None,
        fetch_timeout: float = 20.0,
        min_content_chars: int = 50,
        paragraph_chunk_chars: int = 1000,
        paragraphs_per_chunk: int = 4,
        min_paragraph_chunk_chars: int = 100,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.fetcher = fetcher or (lambda url: fetch_page(url, timeout=fetch_timeout))
        self.min_content_chars = min_content_chars
        self.paragraph_chunk_chars = paragraph_chunk_chars
        self.paragraphs_per_chunk = paragraphs_per_chunk
        self.min_paragraph_chunk_chars = min_paragraph_chunk_chars

    def build_chunk(
        self,
        title: str,
        content: str,
        source: str,
        url: str = "",
        *,
        version: str | None = None,
        category: str | None = None,
    ) -> DocumentChunk:
        """Enrich raw title/content into a chunk without indexing it."""
        checksum = content_fingerprint(content)
        features = extract_features(content)
        embedding = self.embedder.generate(content)
        return DocumentChunk(
            id=chunk_id(source, checksum),
            title=title,
            content=content,
            url=url,
            source=source,
            checksum=checksum,
            version=version,
            category=category or features.category,
            tags=features.tags,
            code_snippets=features.code_snippets,
            configuration_examples=features.configuration_examples,
            embedding=embedding,
            embedding_dimension=int(embedding.size),
            word_count=word_count(content),
        )

    def ingest_text(
        self,
        title: str,
        content: str,
        source: str,
        url: str = "",
        *,
        version: str | None = None,
        category: str | None = None,
    ) -> DocumentChunk:
        """Index one pre-chunked piece of documentation."""
        chunk = self.build_chunk(title, content, source, url, version=version, category=category)
        self.index.put(chunk)
        return chunk

    def _parse(self, raw: str) -> List[PageSection]:
        return parse_page(
            raw,
            min_content_chars=self.min_content_chars,
            paragraph_chunk_chars=self.paragraph_chunk_chars,
            paragraphs_per_chunk=self.paragraphs_per_chunk,
            min_paragraph_chunk_chars=self.min_paragraph_chunk_chars,
        )

    def ingest(
        self,
        raw_or_url: str,
        source: str,
        url: str | None = None,
        *,
        version: str | None = None,
    ) -> List[DocumentChunk]:
        """Parse a page (fetching it first if given a URL) and index its chunks.

        Fetch failures raise ``IngestionError``; parse failures are logged and
        produce no chunks.
        """
        raw = raw_or_url
        if is_url(raw_or_url):
            url = url or raw_or_url.strip()
            try:
                raw = self.fetcher(url)
            except (requests.RequestException, OSError) as exc:
                LOGGER.error("Failed to scrape documentation from %s: %s", url, exc)
                raise IngestionError(f"Failed to fetch {url}: {exc}") from exc

        try:
            sections = self._parse(raw)
        except Exception as exc:
            LOGGER.error("Failed to parse documentation page for %s: %s", source, exc)
            return []

        chunks: dict[str, DocumentChunk] = {}
        for section in sections:
            chunk = self.build_chunk(
                section.title, section.content, source, url or "", version=version
            )
            if chunk.id in chunks:
                continue
            self.index.put(chunk)
            chunks[chunk.id] = chunk

        LOGGER.info("Scraped %d chunks from %s", len(chunks), url or source)
        return list(chunks.values())

    def ingest_sources(self, sources: Mapping[str, str]) -> IngestStats:
        """Ingest several sources; one failing source never aborts the others."""
        stats = IngestStats()
        for source, raw_or_url in sources.items():
            try:
                LOGGER.info("Processing: %s", source)
                chunks = self.ingest(raw_or_url, source)
            except IngestionError:
                stats.increment(source, None)
                continue
            stats.increment(source, len(chunks))
        return stats
