"""Heuristic metadata extraction for documentation chunks.

Everything here is a pure function of the chunk content: no randomness, no I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

CODE_BLOCK_PATTERN = re.compile(r"```[A-Za-z]*\n([\s\S]*?)```")
CODE_LINE_PATTERN = re.compile(
    r"@[A-Za-z]+|\bpublic\s+class\b|\bprivate\b|\bprotected\b|\bimport\s|\bnew\s+[A-Z]"
)
CONFIG_PATTERN = re.compile(r"application\.yml|application\.properties|@Configuration")

TAG_VOCABULARY: Tuple[str, ...] = (
    "spring boot",
    "spring security",
    "spring data",
    "spring web",
    "spring mvc",
    "autoconfiguration",
    "configuration",
    "controller",
    "service",
    "repository",
    "bean",
    "component",
    "autowired",
    "dependency injection",
    "actuator",
    "testing",
)

# First matching family wins.
CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("testing", ("test",)),
    ("security", ("security", "authentication")),
    ("data", ("database", "jpa", "repository")),
    ("web", ("controller", "web", "http")),
    ("configuration", ("configuration", "properties")),
)
DEFAULT_CATEGORY = "core"


@dataclass(frozen=True, slots=True)
class ChunkFeatures:
    tags: List[str]
    code_snippets: List[str]
    configuration_examples: List[str]
    category: str


def extract_tags(content: str) -> List[str]:
    """Return sorted, hyphenated tags for known terms found in ``content``."""
    lowered = content.lower()
    tags = {term.replace(" ", "-") for term in TAG_VOCABULARY if term in lowered}

    if "@" in lowered:
        tags.add("annotations")
    if "yaml" in lowered or "yml" in lowered or "properties" in lowered:
        tags.add("configuration")
    if "test" in lowered:
        tags.add("testing")
    if "security" in lowered:
        tags.add("security")
    if "database" in lowered or "jpa" in lowered:
        tags.add("database")
    return sorted(tags)


def _collect_runs(lines: Iterable[str], accept: Callable[[str], bool], *, strip: bool) -> List[str]:
    blocks: List[str] = []
    current: List[str] = []
    for line in lines:
        if accept(line):
            current.append(line.strip() if strip else line)
        elif current:
            blocks.append("\n".join(current).strip())
            current = []
    if current:
        blocks.append("\n".join(current).strip())
    return [block for block in blocks if block]


def extract_code_snippets(content: str) -> List[str]:
    """Fenced code blocks first, then runs of lines that look like code."""
    snippets = [match.group(1).strip() for match in CODE_BLOCK_PATTERN.finditer(content)]
    snippets.extend(
        _collect_runs(
            content.split("\n"),
            lambda line: CODE_LINE_PATTERN.search(line) is not None,
            strip=True,
        )
    )
    return [snippet for snippet in dict.fromkeys(snippets) if snippet]


def _looks_like_config(line: str) -> bool:
    trimmed = line.strip()
    return ":" in trimmed or "=" in trimmed or trimmed.startswith("#")


def extract_configuration_examples(content: str) -> List[str]:
    """Runs of key/value or comment lines, for content that mentions Spring config files."""
    if not CONFIG_PATTERN.search(content):
        return []
    return _collect_runs(content.split("\n"), _looks_like_config, strip=False)


def infer_category(content: str) -> str:
    lowered = content.lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def extract_features(content: str) -> ChunkFeatures:
    return ChunkFeatures(
        tags=extract_tags(content),
        code_snippets=extract_code_snippets(content),
        configuration_examples=extract_configuration_examples(content),
        category=infer_category(content),
    )
