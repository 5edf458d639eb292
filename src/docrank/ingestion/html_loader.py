"""HTML documentation page loading and section chunking.

Uses BeautifulSoup with the stdlib ``html.parser`` backend, so plain text and
Markdown pages go through the same entry point as HTML.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List

import requests
from bs4 import BeautifulSoup, NavigableString, Tag

from docrank.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)

STRUCTURE_SELECTOR = "section, div.sect1, div.sect2, h1, h2, h3"
TITLE_SELECTORS = ("h1", "h2", "h3", ".title", ".section-title")
HEADING_TAGS = frozenset({"h1", "h2", "h3"})
BLOCK_TAGS = (
    "p", "div", "section", "article", "pre", "li", "ul", "ol", "table", "tr",
    "blockquote", "dd", "dt", "h1", "h2", "h3", "h4", "h5", "h6",
)
UNTITLED_SECTION = "Untitled Section"
PARAGRAPH_TITLE = "Documentation Content"
USER_AGENT = "docrank/0.1 (+documentation indexer)"

# Known lowercase tag names only, so Java generics (List<User>, Map<K, V>) stay plain text.
_MARKUP_PATTERN = re.compile(
    r"<(?:(?i:!doctype)\b|!--|/?(?:html|head|body|main|article|section|nav|header|footer|div"
    r"|span|p|a|b|i|em|strong|br|hr|img|pre|code|ul|ol|li|dl|dt|dd|table|thead|tbody|tr|td"
    r"|th|blockquote|h[1-6])\b)"
)
_INLINE_SPACE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n\s*\n")


@dataclass(frozen=True, slots=True)
class PageSection:
    title: str
    content: str


def looks_like_html(raw: str) -> bool:
    return _MARKUP_PATTERN.search(raw) is not None


def load_soup(raw: str) -> BeautifulSoup:
    """Parse ``raw`` and end every block-level element with a newline.

    Keeps adjacent blocks (``<h2>A</h2><p>B</p>``) on separate lines once
    flattened with ``get_text()``.
    """
    soup = BeautifulSoup(raw, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with(NavigableString("\n"))
    for tag in soup.find_all(list(BLOCK_TAGS)):
        tag.append(NavigableString("\n"))
    return soup


def _clean_text(text: str) -> str:
    return normalize_whitespace(_INLINE_SPACE.sub(" ", line) for line in text.splitlines())


def _fenced(code: str) -> str:
    return "```\n" + code.strip() + "\n```"


def _code_blocks(nodes: Iterable[Tag]) -> List[str]:
    blocks: List[str] = []
    for node in nodes:
        candidates = [node] if node.name in ("pre", "code") else node.select("pre, code")
        for element in candidates:
            # <code> nested in <pre> is already covered by the enclosing block.
            if element.name == "code" and element.find_parent("pre") is not None:
                continue
            code = element.get_text()
            if code.strip():
                blocks.append(_fenced(code))
    return blocks


def _join_content(text: str, code_blocks: List[str]) -> str:
    return "\n\n".join(part for part in [text, *code_blocks] if part).strip()


def _container_title(element: Tag) -> str:
    for selector in TITLE_SELECTORS:
        title_element = element.select_one(selector)
        if title_element is not None:
            return _clean_text(title_element.get_text(" "))
    return UNTITLED_SECTION


def _container_section(element: Tag) -> PageSection:
    text = _clean_text(element.get_text())
    return PageSection(_container_title(element), _join_content(text, _code_blocks([element])))


def _heading_section(heading: Tag) -> PageSection:
    """A heading plus its following siblings, up to the next h1-h3."""
    title = _clean_text(heading.get_text(" "))
    parts = [title]
    tags: List[Tag] = []
    for sibling in heading.next_siblings:
        if isinstance(sibling, Tag):
            if sibling.name in HEADING_TAGS:
                break
            tags.append(sibling)
            parts.append(sibling.get_text())
        elif isinstance(sibling, NavigableString):
            parts.append(str(sibling))
    text = _clean_text("\n".join(parts))
    return PageSection(title, _join_content(text, _code_blocks(tags)))


def _is_valid(section: PageSection, min_content_chars: int) -> bool:
    return bool(section.title.strip()) and len(section.content.strip()) > min_content_chars


def extract_sections(soup: BeautifulSoup, *, min_content_chars: int = 50) -> List[PageSection]:
    """Structural chunking over section containers and top-level headings."""
    sections: List[PageSection] = []
    for element in soup.select(STRUCTURE_SELECTOR):
        if element.name in HEADING_TAGS:
            if element.find_parent(["section"]) is not None or element.find_parent(
                "div", class_=["sect1", "sect2"]
            ) is not None:
                continue
            section = _heading_section(element)
        else:
            section = _container_section(element)
        if _is_valid(section, min_content_chars):
            sections.append(section)
    return sections


def chunk_paragraphs(
    paragraphs: Iterable[str],
    *,
    max_chars: int = 1000,
    paragraphs_per_chunk: int = 4,
    min_chars: int = 100,
) -> List[PageSection]:
    """Group paragraphs into numbered parts.

    A part is emitted once the buffer exceeds ``max_chars`` or holds
    ``paragraphs_per_chunk`` paragraphs, provided it is longer than
    ``min_chars``; shorter buffers keep accumulating.
    """
    sections: List[PageSection] = []
    buffer: List[str] = []

    def emit(body: str) -> None:
        sections.append(PageSection(f"{PARAGRAPH_TITLE} (Part {len(sections) + 1})", body))

    for paragraph in paragraphs:
        text = paragraph.strip()
        if not text:
            continue
        buffer.append(text)
        body = "\n\n".join(buffer)
        if (len(body) > max_chars or len(buffer) >= paragraphs_per_chunk) and len(body) > min_chars:
            emit(body)
            buffer = []

    body = "\n\n".join(buffer)
    if len(body) > min_chars:
        emit(body)
    return sections


def iter_paragraphs(raw: str, soup: BeautifulSoup | None = None) -> List[str]:
    """Paragraph texts: ``<p>`` elements for HTML, blank-line blocks otherwise.

    HTML without any ``<p>`` falls back to blank-line blocks of its flattened text.
    """
    text = raw
    if soup is not None and looks_like_html(raw):
        paragraphs = soup.select("p")
        if paragraphs:
            return [_clean_text(p.get_text()) for p in paragraphs]
        text = soup.get_text()
    return [_clean_text(block) for block in _BLANK_LINES.split(text)]


def parse_page(
    raw: str,
    *,
    min_content_chars: int = 50,
    paragraph_chunk_chars: int = 1000,
    paragraphs_per_chunk: int = 4,
    min_paragraph_chunk_chars: int = 100,
) -> List[PageSection]:
    """Split a page into titled sections, falling back to paragraph parts."""
    soup = load_soup(raw)
    sections = extract_sections(soup, min_content_chars=min_content_chars)
    if sections:
        return sections

    LOGGER.debug("No structural sections found, chunking by paragraphs")
    return chunk_paragraphs(
        iter_paragraphs(raw, soup),
        max_chars=paragraph_chunk_chars,
        paragraphs_per_chunk=paragraphs_per_chunk,
        min_chars=min_paragraph_chunk_chars,
    )


def fetch_page(url: str, *, timeout: float = 20.0) -> str:
    """Download a documentation page and return its decoded body."""
    response = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    response.raise_for_status()
    return response.text
