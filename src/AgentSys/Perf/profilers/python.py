"""Python ``cProfile`` profiler descriptor."""

from __future__ import annotations

from typing import Any

from .base import Profiler


class PythonProfiler(Profiler):
    id = "cprofile"
    tool = "cProfile"
    default_command = "python"
    default_output = "profile.prof"

    def build_command(self, **options: Any) -> str:
        command, output = self._resolve(options)
        target = options.get("target") or "-m"
        return f"{command} -m cProfile -o {output} {target}"


PROFILER = PythonProfiler()
