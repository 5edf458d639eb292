"""Tests for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import requests
from typer.testing import CliRunner

from docrank.cli import _setup_logging, _source_label, app


runner = CliRunner()

PAGE = (
    "<section><h2>Security Filters</h2>"
    "<p>Spring Security uses a chain of servlet filters to secure every HTTP request "
    "in your application.</p></section>"
    "<section><h2>Data Access</h2>"
    "<p>Spring Data JPA repositories remove boilerplate data access code from your "
    "persistence layer.</p></section>"
)


def _write_page(directory: Path, name: str = "guide.html") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(PAGE, encoding="utf-8")
    return path


def _json(output: str) -> dict:
    # Log records may precede the JSON document on the captured stream.
    return json.loads(output[output.index("{") : output.rindex("}") + 1])


def _json_list(output: str) -> list:
    return json.loads(output[output.index("[\n") : output.rindex("]") + 1])


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("docrank.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("docrank.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestSourceLabel:
    """Tests for _source_label helper."""

    def test_url_uses_host(self) -> None:
        assert _source_label("https://docs.spring.io/spring-boot/") == "docs.spring.io"

    def test_path_uses_stem(self) -> None:
        assert _source_label("/tmp/pages/security.html") == "security"


class TestIngestCommand:
    """Tests for the ingest command."""

    def test_ingest_files(self, tmp_path: Path) -> None:
        """Parses every page found in a directory."""
        _write_page(tmp_path / "pages")

        result = runner.invoke(app, ["ingest", str(tmp_path / "pages")])

        assert result.exit_code == 0
        assert "Chunks: 2, failed sources: 0" in result.stdout

    def test_ingest_empty_directory(self, tmp_path: Path) -> None:
        """Warns when a directory holds no pages."""
        empty_dir = tmp_path / "empty"
        empty_dir.mkdir()

        result = runner.invoke(app, ["ingest", str(empty_dir)])

        assert result.exit_code == 0
        assert "No pages found" in result.stdout
        assert "Chunks: 0" in result.stdout

    def test_ingest_unreachable_url(self) -> None:
        """Fetch failures are reported and counted."""
        with patch(
            "docrank.index.indexer.fetch_page",
            side_effect=requests.ConnectionError("refused"),
        ):
            result = runner.invoke(app, ["ingest", "https://unreachable.example/docs"])

        assert result.exit_code == 0
        assert "failed sources: 1" in result.stdout


class TestSearchCommand:
    """Tests for the search command."""

    def test_search_samples_json(self) -> None:
        """Seeded sample documentation is searchable and filterable."""
        result = runner.invoke(
            app,
            ["search", "spring security", "--keyword", "--source", "spring-security", "--json"],
        )

        assert result.exit_code == 0
        payload = _json(result.stdout)
        assert payload["searchType"] == "keyword"
        assert payload["totalResults"] >= 1
        assert all(item["source"] == "spring-security" for item in payload["results"])
        assert "codeSnippets" not in payload["results"][0]

    def test_search_no_results(self) -> None:
        """Empty index prints a notice."""
        result = runner.invoke(app, ["search", "spring", "--no-samples"])
        assert result.exit_code == 0
        assert "No matches found" in result.stdout

    def test_search_with_pages(self, tmp_path: Path) -> None:
        """Extra pages are indexed before searching."""
        _write_page(tmp_path)

        result = runner.invoke(
            app,
            [
                "search",
                "jpa",
                "--keyword",
                "--no-samples",
                "--page",
                str(tmp_path),
                "--page-source",
                "local",
                "--json",
            ],
        )

        assert result.exit_code == 0
        payload = _json(result.stdout)
        assert [item["title"] for item in payload["results"]] == ["Data Access"]
        assert payload["results"][0]["source"] == "local"

    def test_search_table_output(self) -> None:
        """Table output shows a summary line."""
        result = runner.invoke(app, ["search", "actuator endpoints", "--top-k", "2"])
        assert result.exit_code == 0
        assert "results (semantic)" in result.stdout


class TestStatsCommand:
    """Tests for the stats command."""

    def test_stats_with_samples(self) -> None:
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        payload = _json(result.stdout)
        assert payload["totalDocuments"] == 5
        assert payload["documentsBySource"]["spring-boot"] == 3

    def test_stats_without_samples(self) -> None:
        result = runner.invoke(app, ["stats", "--no-samples"])
        assert result.exit_code == 0
        assert _json(result.stdout)["totalDocuments"] == 0


class TestUpdateCommand:
    """Tests for the update command."""

    def test_update_single_source(self) -> None:
        """Configured sources are fetched and summarised."""
        with patch("docrank.index.indexer.fetch_page", return_value=PAGE) as mock_fetch:
            result = runner.invoke(app, ["update", "--source", "spring-boot-3.x"])

        assert result.exit_code == 0
        assert "Ingested: 1, failed: 0, chunks: 2" in result.stdout
        assert mock_fetch.call_count == 1

    def test_update_all_sources_unreachable(self) -> None:
        with patch(
            "docrank.index.indexer.fetch_page",
            side_effect=requests.ConnectionError("refused"),
        ):
            result = runner.invoke(app, ["update"])

        assert result.exit_code == 0
        assert "Ingested: 0, failed: 6, chunks: 0" in result.stdout

    def test_update_unknown_source(self) -> None:
        with patch("docrank.index.indexer.fetch_page") as mock_fetch:
            result = runner.invoke(app, ["update", "--source", "hibernate"])

        assert result.exit_code != 0
        mock_fetch.assert_not_called()


class TestSourcesCommand:
    """Tests for the sources command."""

    def test_sources_without_samples(self) -> None:
        result = runner.invoke(app, ["sources", "--no-samples"])

        assert result.exit_code == 0
        listed = _json_list(result.stdout)
        assert len(listed) == 6
        assert all(item["documentCount"] == 0 for item in listed)

    def test_sources_with_samples(self) -> None:
        """Sample sources appear as indexed but unconfigured."""
        result = runner.invoke(app, ["sources"])

        assert result.exit_code == 0
        listed = {item["name"]: item for item in _json_list(result.stdout)}
        assert listed["spring-boot"]["documentCount"] == 3
        assert listed["spring-boot"]["configured"] is False
        assert listed["spring-boot-3.x"]["url"].startswith("https://docs.spring.io")


class TestWebCommand:
    """Tests for the web command."""

    def test_web_starts_server(self) -> None:
        """Starts uvicorn server with correct parameters."""
        with patch("uvicorn.run") as mock_uvicorn_run:
            result = runner.invoke(app, ["web", "--host", "0.0.0.0", "--port", "9000"])
            assert result.exit_code == 0
            mock_uvicorn_run.assert_called_once()
            call_kwargs = mock_uvicorn_run.call_args[1]
            assert call_kwargs["host"] == "0.0.0.0"
            assert call_kwargs["port"] == 9000
