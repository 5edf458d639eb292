"""Utility helpers for working with local documentation pages."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

PAGE_SUFFIXES = frozenset({".html", ".htm", ".md", ".txt"})


def iter_page_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield documentation page paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_page_paths(
                sorted(child for child in item.rglob("*") if child.is_file())
            )
        elif item.is_file() and item.suffix.lower() in PAGE_SUFFIXES:
            yield item


def read_page(path: Path) -> str:
    """Read a page as UTF-8, replacing undecodable bytes."""
    return path.read_text(encoding="utf-8", errors="replace")
