"""
Platform-aware state directory helpers.

Investigation records and baselines live inside the state directory of the
AI coding assistant driving the workflow (``.claude``, ``.opencode`` or
``.codex``). Detection is cached per resolved base path; the ``AI_STATE_DIR``
override always wins and is never cached so tests and users can switch it at
runtime.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

STATE_DIR_ENV = "AI_STATE_DIR"
CLAUDE_STATE_DIR = ".claude"
OPENCODE_STATE_DIR = ".opencode"
CODEX_STATE_DIR = ".codex"
PERF_SUBDIR = "perf"

_CACHED_STATE_DIRS: Dict[Path, str] = {}


def resolve_base_path(base_path: Path | str | None = None) -> Path:
    """Return ``base_path`` as a :class:`Path`, defaulting to the working directory."""

    return Path(base_path) if base_path is not None else Path.cwd()


def _detect_state_dir(base: Path) -> str:
    if os.getenv("OPENCODE_CONFIG") or os.getenv("OPENCODE_CONFIG_DIR"):
        return OPENCODE_STATE_DIR
    if (base / OPENCODE_STATE_DIR).is_dir():
        return OPENCODE_STATE_DIR
    if os.getenv("CODEX_HOME"):
        return CODEX_STATE_DIR
    if (base / CODEX_STATE_DIR).is_dir():
        return CODEX_STATE_DIR
    return CLAUDE_STATE_DIR


def get_state_dir(base_path: Path | str | None = None) -> str:
    """Return the state directory name for the assistant running in ``base_path``.

    Detection order: ``AI_STATE_DIR`` override, OpenCode environment or
    ``.opencode/`` directory, Codex environment or ``.codex/`` directory,
    falling back to ``.claude``.
    """

    override = os.getenv(STATE_DIR_ENV)
    if override:
        return override

    base = resolve_base_path(base_path)
    cache_key = base.resolve()
    cached = _CACHED_STATE_DIRS.get(cache_key)
    if cached:
        return cached

    detected = _detect_state_dir(base)
    _CACHED_STATE_DIRS[cache_key] = detected
    return detected


def get_state_dir_path(base_path: Path | str | None = None) -> Path:
    """Return the absolute-or-relative path of the state directory."""

    base = resolve_base_path(base_path)
    return base / get_state_dir(base)


def get_perf_dir(base_path: Path | str | None = None) -> Path:
    """Return ``<state-dir>/perf`` for ``base_path``."""

    return get_state_dir_path(base_path) / PERF_SUBDIR


def get_platform_name(base_path: Path | str | None = None) -> str:
    """Return ``claude``, ``opencode``, ``codex``, ``custom`` or ``unknown``."""

    state_dir = get_state_dir(base_path)
    if os.getenv(STATE_DIR_ENV):
        return "custom"
    return {
        OPENCODE_STATE_DIR: "opencode",
        CODEX_STATE_DIR: "codex",
        CLAUDE_STATE_DIR: "claude",
    }.get(state_dir, "unknown")


def clear_cache() -> None:
    """Forget cached detections (used by tests)."""

    _CACHED_STATE_DIRS.clear()


__all__ = [
    "STATE_DIR_ENV",
    "clear_cache",
    "get_perf_dir",
    "get_platform_name",
    "get_state_dir",
    "get_state_dir_path",
    "resolve_base_path",
]
