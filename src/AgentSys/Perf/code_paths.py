"""Rank repository files that plausibly implement an investigated scenario.

The repo map is the JSON document produced by the repo-map plugin:
``{"files": {"<path>": {"symbols": {"<kind>": [{"name": ...}, ...]}}}}``.
Files are scored by how many scenario keywords occur in their path or symbol
names.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

DEFAULT_STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "from", "that", "this", "these", "those",
        "into", "over", "under", "than", "then", "when", "where", "what", "which",
        "your", "you", "our", "their", "there", "have", "has", "had", "will",
        "would", "should", "could", "about", "across", "after", "before", "while",
        "perf", "performance", "investigation", "baseline", "benchmark", "scenario",
    }
)
MAX_SYMBOLS_PER_PATH = 8

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def normalize_keywords(text: Any) -> list[str]:
    """Return distinct lower-case keywords (longer than two chars, no stopwords)."""

    if not text or not isinstance(text, str):
        return []
    keywords: list[str] = []
    for token in _TOKEN_SPLIT.split(text.lower()):
        if len(token) <= 2 or token in DEFAULT_STOPWORDS or token in keywords:
            continue
        keywords.append(token)
    return keywords


def extract_symbols(file_data: Any) -> list[str]:
    """Flatten the symbol groups of one repo-map entry into names."""

    if not isinstance(file_data, Mapping) or not file_data.get("symbols"):
        return []
    names: list[str] = []
    for group in file_data["symbols"].values():
        if not isinstance(group, list):
            continue
        names.extend(
            symbol["name"]
            for symbol in group
            if isinstance(symbol, Mapping) and symbol.get("name")
        )
    return names


def score_entry(file: str, symbols: list[str], keywords: list[str]) -> int:
    if not keywords:
        return 0
    haystack = " ".join([file, *symbols]).lower()
    return sum(1 for keyword in keywords if keyword in haystack)


def collect_code_paths(repo_map: Any, scenario: Any, limit: int = 12) -> dict[str, Any]:
    """Return the ``limit`` best-matching files for ``scenario``."""

    keywords = normalize_keywords(scenario)
    if not isinstance(repo_map, Mapping) or not repo_map.get("files"):
        return {"keywords": keywords, "paths": []}

    candidates = []
    for file, data in repo_map["files"].items():
        symbols = extract_symbols(data)
        score = score_entry(file, symbols, keywords)
        if score > 0:
            candidates.append((file, score, symbols))

    candidates.sort(key=lambda item: (-item[1], item[0]))
    return {
        "keywords": keywords,
        "paths": [
            {"file": file, "score": score, "symbols": symbols[:MAX_SYMBOLS_PER_PATH]}
            for file, score, symbols in candidates[:limit]
        ],
    }


__all__ = ["collect_code_paths", "extract_symbols", "normalize_keywords"]
