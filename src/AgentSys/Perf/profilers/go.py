"""Go ``pprof`` profiler descriptor."""

from __future__ import annotations

from typing import Any

from .base import Profiler


class GoProfiler(Profiler):
    id = "pprof"
    tool = "pprof"
    default_command = "go test"
    default_output = "cpu.pprof"

    def build_command(self, **options: Any) -> str:
        command, output = self._resolve(options)
        return f"{command} -cpuprofile={output}"


PROFILER = GoProfiler()
