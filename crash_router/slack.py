"""Chat webhook over a Slack incoming-webhook URL."""

from __future__ import annotations

import asyncio
import traceback
from types import TracebackType
from typing import Any

import aiohttp
from loguru import logger

from crash_router.errors import WebhookError
from crash_router.models import ChatWebhook

_TYPE_LABELS = {"f": "Fatal", "nf": "Non-fatal"}


def format_trace(error: BaseException, stack: TracebackType | None, limit: int = 2800) -> str:
    text = "".join(traceback.format_exception(type(error), error, stack))
    # Slack section text caps at 3000 chars
    return text if len(text) <= limit else "..." + text[-limit:]


def build_payload(
    error: BaseException,
    stack: TracebackType | None,
    type_tag: str,
    *,
    app_name: str = "crash-router",
    build_variant: str = "",
) -> dict[str, Any]:
    label = _TYPE_LABELS.get(type_tag, type_tag)
    headline = f"{label} error in {app_name}: {type(error).__name__}: {error}"
    return {
        "text": headline[:300],
        "blocks": [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*{label} error* `{type(error).__name__}`"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*App*\n{app_name}"},
                    {"type": "mrkdwn", "text": f"*Variant*\n{build_variant or 'unknown'}"},
                    {"type": "mrkdwn", "text": f"*Type*\n{type_tag}"},
                ],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"```\n{format_trace(error, stack)}\n```"},
            },
        ],
    }


class SlackWebhook(ChatWebhook):
    """Posts error reports to Slack. Raises WebhookError on any failure."""

    def __init__(
        self,
        url: str | None,
        *,
        app_name: str = "crash-router",
        build_variant: str = "",
        session: aiohttp.ClientSession | None = None,
        timeout_s: float = 10.0,
    ):
        self._url = url
        self._app_name = app_name
        self._build_variant = build_variant
        self._session = session
        self._timeout_s = timeout_s

    async def send(self, error: BaseException, stack: TracebackType | None, type_tag: str) -> None:
        if not self._url:
            raise WebhookError(payload="no webhook URL configured")

        payload = build_payload(
            error, stack, type_tag,
            app_name=self._app_name, build_variant=self._build_variant,
        )
        try:
            if self._session is not None:
                await self._post(self._session, payload)
            else:
                async with aiohttp.ClientSession() as session:
                    await self._post(session, payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise WebhookError(payload=f"{type(e).__name__}: {e}") from e
        logger.debug(f"Slack: {type_tag} report delivered")

    async def _post(self, session: aiohttp.ClientSession, payload: dict[str, Any]) -> None:
        async with session.post(
            self._url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=self._timeout_s),
        ) as resp:
            if resp.status >= 300:
                raise WebhookError(status=resp.status, payload=await resp.text())
