"""Exceptions raised inside the external call wrappers.

None of these escape the public operations: the wrappers convert them into
``FetchResult`` / ``DeliveryResult`` values at their origin.
"""

from __future__ import annotations

from typing import Any


class CrashRouterError(Exception):
    """Base class for crash-router failures."""


class ConfigFormatError(CrashRouterError, ValueError):
    """The remote config body could not be turned into a flag."""


class WebhookError(CrashRouterError):
    """Chat delivery failed; ``status`` is None for transport failures."""

    def __init__(self, status: int | None = None, payload: Any | None = None):
        super().__init__(status, payload)
        self.status = status
        self.payload = payload

    def __str__(self) -> str:
        if self.status is None:
            return f"webhook delivery failed: {self.payload}"
        return f"webhook returned HTTP {self.status}: {self.payload}"
