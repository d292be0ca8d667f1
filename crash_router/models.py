"""Core data models for crash-router."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import TracebackType
from typing import Any


class Severity(str, Enum):
    FATAL = "fatal"
    NON_FATAL = "non_fatal"


class Origin(str, Enum):
    FRAMEWORK = "framework"  # sys.excepthook
    ASYNC = "async"          # event loop exception handler
    ISOLATE = "isolate"      # worker thread excepthook


class ErrorKind(str, Enum):
    """Outcome classification for every external call."""

    OK = "ok"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    BACKEND_FAILURE = "backend_failure"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class RemoteFlag:
    """The cached remote feature flag."""
    is_more_data: bool = False

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "RemoteFlag":
        value = data.get("isMoreData", False)
        if value is None:
            value = False
        if not isinstance(value, bool):
            raise TypeError(f"isMoreData must be a boolean, got {type(value).__name__}")
        return cls(is_more_data=value)


@dataclass
class ErrorEvent:
    """A single error occurrence, built by a hook and consumed by the router."""
    error: BaseException
    severity: Severity
    origin: Origin
    stack: TracebackType | None = None
    library: str | None = None  # reporting component, e.g. "image resource service"
    context: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL

    @property
    def type_tag(self) -> str:
        return "f" if self.is_fatal else "nf"

    @classmethod
    def framework(cls, error: BaseException, stack: TracebackType | None = None, **kwargs: Any) -> "ErrorEvent":
        return cls(error, Severity.FATAL, Origin.FRAMEWORK, stack or error.__traceback__, **kwargs)

    @classmethod
    def uncaught_async(cls, error: BaseException, stack: TracebackType | None = None, **kwargs: Any) -> "ErrorEvent":
        return cls(error, Severity.NON_FATAL, Origin.ASYNC, stack or error.__traceback__, **kwargs)

    @classmethod
    def isolate(cls, error: BaseException, stack: TracebackType | None = None, **kwargs: Any) -> "ErrorEvent":
        return cls(error, Severity.FATAL, Origin.ISOLATE, stack or error.__traceback__, **kwargs)


@dataclass(frozen=True)
class RoutingDecision:
    """Result of routing classification."""
    send_to_crash_backend: bool
    send_to_chat_webhook: bool
    reason: str  # "framework_fatal", "isolate_fatal", "non_fatal", "variant_fallback"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of the remote config GET."""
    kind: ErrorKind
    status: int | None = None
    body: Any = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is ErrorKind.OK


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one outbound backend call."""
    target: str  # "crash" or "chat"
    kind: ErrorKind
    fatal: bool = False
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is ErrorKind.OK


@dataclass
class RouteOutcome:
    """What the router did with one event."""
    decision: RoutingDecision | None = None
    suppressed: str | None = None
    deliveries: list[DeliveryResult] = field(default_factory=list)

    @property
    def fell_back(self) -> bool:
        return any(d.target == "crash" and d.detail == "fallback" for d in self.deliveries)


class CrashBackend(ABC):
    """Abstract base class for crash-reporting backends."""

    @abstractmethod
    async def set_custom_key(self, key: str, value: Any) -> None:
        """Attach a key/value pair to the session context."""
        ...

    @abstractmethod
    async def record_error(
        self,
        error: BaseException,
        stack: TracebackType | None = None,
        *,
        fatal: bool = False,
    ) -> None:
        """Record an error report."""
        ...

    @abstractmethod
    def log(self, message: str) -> None:
        """Add a breadcrumb line to the next report."""
        ...

    @abstractmethod
    async def set_collection_enabled(self, enabled: bool) -> None:
        ...

    async def set_performance_collection_enabled(self, enabled: bool) -> None:
        return None

    @property
    def name(self) -> str:
        return self.__class__.__name__


class ChatWebhook(ABC):
    """Abstract base class for chat notification backends."""

    @abstractmethod
    async def send(
        self,
        error: BaseException,
        stack: TracebackType | None,
        type_tag: str,
    ) -> None:
        """Deliver an error report. Raises on delivery failure."""
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__
