"""Profiler registry and project-language based selection."""

from __future__ import annotations

from pathlib import Path

from .base import ProfileOutput, Profiler
from .go import PROFILER as GO_PROFILER
from .java import PROFILER as JAVA_PROFILER
from .node import PROFILER as NODE_PROFILER
from .python import PROFILER as PYTHON_PROFILER
from .rust import PROFILER as RUST_PROFILER

JAVA_INDICATORS = ("pom.xml", "build.gradle", "build.gradle.kts")
LANGUAGE_INDICATORS: dict[str, tuple[str, ...]] = {
    "javascript": ("package.json",),
    "typescript": ("tsconfig.json",),
    "go": ("go.mod",),
    "python": ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "Pipfile"),
    "rust": ("Cargo.toml",),
    "java": JAVA_INDICATORS,
}


def _resolve_repo(repo_path: Path | str | None) -> Path:
    return Path(repo_path) if repo_path is not None else Path.cwd()


def detect_project_languages(repo_path: Path | str | None = None) -> list[str]:
    """Return languages whose indicator files exist at the root of ``repo_path``."""

    root = _resolve_repo(repo_path)
    return [
        language
        for language, indicators in LANGUAGE_INDICATORS.items()
        if any((root / name).exists() for name in indicators)
    ]


def has_java_indicators(repo_path: Path | str | None = None) -> bool:
    root = _resolve_repo(repo_path)
    return any((root / name).exists() for name in JAVA_INDICATORS)


def select_profiler(repo_path: Path | str | None = None) -> Profiler:
    """Pick the profiler matching the project in ``repo_path`` (node by default)."""

    if has_java_indicators(repo_path):
        return JAVA_PROFILER
    languages = detect_project_languages(repo_path)
    if "typescript" in languages or "javascript" in languages:
        return NODE_PROFILER
    if "go" in languages:
        return GO_PROFILER
    if "python" in languages:
        return PYTHON_PROFILER
    if "rust" in languages:
        return RUST_PROFILER
    return NODE_PROFILER


def list_available() -> list[str]:
    """Return the ids of all registered profilers."""

    return [
        NODE_PROFILER.id,
        JAVA_PROFILER.id,
        PYTHON_PROFILER.id,
        GO_PROFILER.id,
        RUST_PROFILER.id,
    ]


__all__ = [
    "ProfileOutput",
    "Profiler",
    "detect_project_languages",
    "has_java_indicators",
    "list_available",
    "select_profiler",
]
