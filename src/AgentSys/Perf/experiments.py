"""Sequential experiment runner."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from .errors import PerfInputError

T = TypeVar("T")


def run_experiments(experiments: Sequence[T], runner: Callable[[T], Any]) -> dict[str, list[Any]]:
    """Run ``runner`` on each experiment in order, never in parallel."""

    if isinstance(experiments, (str, bytes)) or not isinstance(experiments, Sequence):
        raise PerfInputError("experiments must be a sequence")
    if not callable(runner):
        raise PerfInputError("runner must be callable")

    results = [runner(experiment) for experiment in experiments]
    return {"results": results}


__all__ = ["run_experiments"]
