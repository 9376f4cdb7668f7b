# === NAVMAP v1 ===
# {
#   "module": "tests.conftest",
#   "purpose": "Shared pytest fixtures for suite",
#   "sections": [
#     {
#       "id": "isolated-perf-environment",
#       "name": "isolated_perf_environment",
#       "anchor": "function-isolated-perf-environment",
#       "kind": "function"
#     },
#     {
#       "id": "state-root",
#       "name": "state_root",
#       "anchor": "function-state-root",
#       "kind": "function"
#     },
#     {
#       "id": "python-command",
#       "name": "python_command",
#       "anchor": "function-python-command",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pytest Configuration

Puts ``src`` on ``sys.path`` and isolates every test from the developer's
environment: assistant detection variables and ``PERF_*`` settings are
cleared, and the cached state-directory detection is reset.
"""

from __future__ import annotations

import shlex
import sys
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from AgentSys.Perf import env as perf_env  # noqa: E402

_ISOLATED_VARIABLES = (
    "AI_STATE_DIR",
    "OPENCODE_CONFIG",
    "OPENCODE_CONFIG_DIR",
    "CODEX_HOME",
    "PERF_ALLOW_SHORT",
    "PERF_ALLOW_DIRTY",
    "PERF_RUN_DURATION",
    "PERF_EXPERIMENT",
    "PERF_CPU_LIMIT",
    "PERF_MEMORY_LIMIT",
    "PERF_LOG_LEVEL",
    "PERF_LOG_FORMAT",
    "PERF_MIN_DURATION_S",
    "PERF_BINARY_SEARCH_MIN_DURATION_S",
    "PERF_DURATION_SLACK_S",
)


@pytest.fixture(autouse=True)
def isolated_perf_environment(monkeypatch: pytest.MonkeyPatch):
    """Clear perf-related environment variables and detection caches."""

    for name in _ISOLATED_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    perf_env.clear_cache()
    yield
    perf_env.clear_cache()


@pytest.fixture()
def state_root(tmp_path: Path) -> Path:
    """Project root with an empty ``.claude`` state directory."""

    (tmp_path / ".claude").mkdir()
    return tmp_path


@pytest.fixture()
def python_command() -> Callable[[str], str]:
    """Build a shell command running ``code`` with the current interpreter."""

    def _build(code: str) -> str:
        return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"

    return _build
