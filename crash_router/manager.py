"""CrashManager: wires config, router and hooks together at startup."""

from __future__ import annotations

import asyncio

import aiohttp
from loguru import logger

from crash_router.annotator import Source, UserContextAnnotator
from crash_router.hooks import ErrorHooks, install_error_hooks
from crash_router.models import ChatWebhook, CrashBackend
from crash_router.remote_config import RemoteConfigClient
from crash_router.router import ErrorRouter
from crash_router.settings import Settings, get_settings
from crash_router.telemetry import TelemetrySink


class CrashManager:
    """Entry point: ``setup`` once at startup, ``set_user`` after login."""

    def __init__(
        self,
        crash_backend: CrashBackend,
        chat_webhook: ChatWebhook,
        settings: Settings | None = None,
        *,
        telemetry: TelemetrySink | None = None,
        config: RemoteConfigClient | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.settings = settings or get_settings()
        self.crash_backend = crash_backend
        self.chat_webhook = chat_webhook
        self.telemetry = telemetry or TelemetrySink(crash_backend)
        self.config = config or RemoteConfigClient(
            self.telemetry,
            url=self.settings.config_url,
            session=session,
            timeout_s=self.settings.http_timeout_seconds,
        )
        self.router = ErrorRouter(
            self.config,
            crash_backend,
            chat_webhook,
            self.telemetry,
            is_dev_variant=self.settings.is_dev_variant,
        )
        self.hooks: ErrorHooks | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> "CrashManager":
        """Build the Sentry + Slack stack described by settings."""
        from crash_router.sentry_backend import SentryCrashBackend
        from crash_router.slack import SlackWebhook

        settings = settings or get_settings()
        crash = SentryCrashBackend(
            settings.sentry_dsn,
            release=settings.build_number,
            environment=settings.build_variant,
            traces_sample_rate=settings.traces_sample_rate,
        )
        chat = SlackWebhook(
            settings.slack_webhook_url,
            app_name=settings.app_name,
            build_variant=settings.build_variant,
            session=session,
        )
        return cls(crash, chat, settings, session=session)

    async def setup(self, loop: asyncio.AbstractEventLoop | None = None) -> ErrorHooks | None:
        """Enable collection and install hooks in release builds.

        Outside release builds collection is forced off and no hooks are
        installed.
        """
        can_log = self.settings.release
        await self.crash_backend.set_performance_collection_enabled(can_log)

        if not can_log:
            await self.crash_backend.set_collection_enabled(False)
            logger.info("CrashManager: non-release build, crash collection disabled")
            return None

        await self.config.initialize()
        self.hooks = install_error_hooks(self.router, loop)
        return self.hooks

    async def set_user(
        self,
        *,
        logged_in_user: Source,
        workspace: Source,
        device_id: Source,
        build_number: Source | None = None,
    ) -> dict[str, str]:
        async def _build_number() -> str:
            return self.settings.build_number

        annotator = UserContextAnnotator(
            self.crash_backend,
            build_number=build_number or _build_number,
            logged_in_user=logged_in_user,
            workspace=workspace,
            device_id=device_id,
        )
        return await annotator.annotate()

    def log_event(self, message: str) -> None:
        self.telemetry.log_event(message)

    def log_screen(self, name: str) -> None:
        self.telemetry.log_screen(name)

    def teardown(self) -> None:
        if self.hooks is not None:
            self.hooks.uninstall()
            self.hooks = None
