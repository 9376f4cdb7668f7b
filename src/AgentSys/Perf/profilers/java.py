"""Java Flight Recorder descriptor."""

from __future__ import annotations

from typing import Any

from .base import Profiler


class JavaProfiler(Profiler):
    id = "jfr"
    tool = "jfr"
    default_command = "java"
    default_output = "profile.jfr"

    def build_command(self, **options: Any) -> str:
        command, output = self._resolve(options)
        duration = options.get("duration") or "60s"
        return f"{command} -XX:StartFlightRecording=duration={duration},filename={output}"


PROFILER = JavaProfiler()
