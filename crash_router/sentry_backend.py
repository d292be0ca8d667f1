"""Crash backend over sentry_sdk."""

from __future__ import annotations

from types import TracebackType
from typing import Any

import sentry_sdk
from loguru import logger

from crash_router.models import CrashBackend


class SentryCrashBackend(CrashBackend):
    """Custom keys become tags, log lines become breadcrumbs.

    Collection is gated in ``before_send`` so it can be switched off after
    ``sentry_sdk.init`` has run; performance collection goes through the
    traces sampler the same way.
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        release: str | None = None,
        environment: str | None = None,
        traces_sample_rate: float = 1.0,
        init: bool = True,
    ):
        self._collection_enabled = True
        self._performance_enabled = True
        self._traces_sample_rate = traces_sample_rate
        if init:
            sentry_sdk.init(
                dsn=dsn,
                release=release,
                environment=environment,
                before_send=self._before_send,
                traces_sampler=self._traces_sampler,
            )
            logger.info(f"Sentry initialized (environment={environment}, release={release})")

    @property
    def collection_enabled(self) -> bool:
        return self._collection_enabled

    @property
    def performance_enabled(self) -> bool:
        return self._performance_enabled

    def _before_send(self, event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
        return event if self._collection_enabled else None

    def _traces_sampler(self, sampling_context: dict[str, Any]) -> float:
        return self._traces_sample_rate if self._performance_enabled else 0.0

    async def set_custom_key(self, key: str, value: Any) -> None:
        sentry_sdk.set_tag(key, "" if value is None else str(value))

    async def record_error(
        self,
        error: BaseException,
        stack: TracebackType | None = None,
        *,
        fatal: bool = False,
    ) -> None:
        sentry_sdk.capture_exception(
            (type(error), error, stack or error.__traceback__),
            level="fatal" if fatal else "error",
        )

    def log(self, message: str) -> None:
        sentry_sdk.add_breadcrumb(category="log", message=message, level="info")

    async def set_collection_enabled(self, enabled: bool) -> None:
        self._collection_enabled = enabled
        logger.info(f"Sentry collection {'enabled' if enabled else 'disabled'}")

    async def set_performance_collection_enabled(self, enabled: bool) -> None:
        self._performance_enabled = enabled
