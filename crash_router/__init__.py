"""crash-router: error hooks, remote-flag routing and crash/chat delivery."""

from crash_router.models import (
    ChatWebhook,
    CrashBackend,
    DeliveryResult,
    ErrorEvent,
    ErrorKind,
    FetchResult,
    Origin,
    RemoteFlag,
    RouteOutcome,
    RoutingDecision,
    Severity,
)
from crash_router.errors import ConfigFormatError, CrashRouterError, WebhookError
from crash_router.telemetry import TelemetrySink
from crash_router.remote_config import RemoteConfigClient, fetch_config, parse_flag, resolve_flag
from crash_router.policy import decide
from crash_router.router import ErrorRouter
from crash_router.hooks import ErrorHooks, install_error_hooks
from crash_router.annotator import UserContextAnnotator, UserInfo
from crash_router.manager import CrashManager

__all__ = [
    "ChatWebhook",
    "CrashBackend",
    "DeliveryResult",
    "ErrorEvent",
    "ErrorKind",
    "FetchResult",
    "Origin",
    "RemoteFlag",
    "RouteOutcome",
    "RoutingDecision",
    "Severity",
    "ConfigFormatError",
    "CrashRouterError",
    "WebhookError",
    "TelemetrySink",
    "RemoteConfigClient",
    "fetch_config",
    "parse_flag",
    "resolve_flag",
    "decide",
    "ErrorRouter",
    "ErrorHooks",
    "install_error_hooks",
    "UserContextAnnotator",
    "UserInfo",
    "CrashManager",
]
