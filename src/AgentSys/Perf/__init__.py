"""Performance investigation helpers for assistant workflows."""

from __future__ import annotations

from typing import Any

__version__ = "0.1.0"

__all__ = ["app"]


def __getattr__(name: str) -> Any:
    """Lazily expose the Typer application so library imports stay light."""

    if name == "app":
        from AgentSys.Perf.cli import app as perf_app

        return perf_app
    raise AttributeError(name)
