"""Audit log for every routing branch."""

from collections import deque
from typing import Callable

from loguru import logger

from crash_router.models import CrashBackend


class TelemetrySink:
    """Writes free-text lines to the app log, the crash backend breadcrumbs,
    and any extra sinks (e.g. a request-cache interceptor)."""

    def __init__(
        self,
        crash_backend: CrashBackend | None = None,
        extra_sinks: list[Callable[[str], None]] | None = None,
    ):
        self._crash_backend = crash_backend
        self._extra_sinks = list(extra_sinks or [])
        self.lines: deque[str] = deque(maxlen=200)  # recent lines, for inspection

    def add_sink(self, sink: Callable[[str], None]) -> None:
        self._extra_sinks.append(sink)

    def log_event(self, message: str) -> None:
        logger.info(f"EventLogger: {message}")
        self.lines.append(message)

        if self._crash_backend is not None:
            try:
                self._crash_backend.log(message)
            except Exception as e:
                logger.warning(f"Breadcrumb to {self._crash_backend.name} failed: {e}")

        for sink in self._extra_sinks:
            try:
                sink(f"EventLogger: {message}")
            except Exception as e:
                logger.warning(f"Telemetry sink {sink!r} failed: {e}")

    def log_screen(self, name: str) -> None:
        self.log_event(f"Navigating to {name}")
