"""One-shot remote feature flag: fetch once, cache forever, default on failure."""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import threading
from typing import Any

import aiohttp
from loguru import logger

from crash_router.errors import ConfigFormatError
from crash_router.models import ErrorKind, FetchResult, RemoteFlag
from crash_router.settings import DEFAULT_CONFIG_URL
from crash_router.telemetry import TelemetrySink

DEFAULT_FLAG = RemoteFlag(is_more_data=False)


async def fetch_config(
    session: aiohttp.ClientSession,
    url: str,
    timeout_s: float | None = None,
) -> FetchResult:
    """GET the config document. Never raises."""
    kwargs: dict[str, Any] = {}
    if timeout_s is not None:
        kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout_s)
    try:
        async with session.get(url, **kwargs) as resp:
            if resp.status != 200:
                return FetchResult(ErrorKind.HTTP_STATUS, status=resp.status, detail=resp.reason or "")
            # raw bytes whatever the content type; parse_flag decodes leniently
            body = await resp.read()
            return FetchResult(ErrorKind.OK, status=resp.status, body=body)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError, RuntimeError) as e:
        # RuntimeError: caller-owned session already closed
        return FetchResult(ErrorKind.NETWORK, detail=f"{type(e).__name__}: {e}")


def parse_flag(body: Any) -> RemoteFlag:
    """Turn a response body (str, bytes or decoded mapping) into a flag.

    Raises:
        ConfigFormatError: If the body is not a JSON object with a boolean flag.
    """
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except ValueError as e:
            raise ConfigFormatError(f"Invalid JSON: {e}") from e
    if not isinstance(body, dict):
        raise ConfigFormatError(f"Unexpected data type: {type(body).__name__}")
    try:
        return RemoteFlag.from_json(body)
    except TypeError as e:
        raise ConfigFormatError(str(e)) from e


def resolve_flag(result: FetchResult) -> tuple[RemoteFlag, str]:
    """Degrade-to-default policy. Returns (flag, telemetry message)."""
    if result.kind is ErrorKind.HTTP_STATUS:
        return DEFAULT_FLAG, (
            f"Failed to fetch remote config (HTTP {result.status}), using default: isMoreData: false"
        )
    if not result.ok:
        return DEFAULT_FLAG, (
            f"Failed to initialize remote config ({result.detail}), using default: isMoreData: false"
        )
    try:
        flag = parse_flag(result.body)
    except ConfigFormatError as e:
        return DEFAULT_FLAG, (
            f"Failed to parse remote config ({e}), using default: isMoreData: false"
        )
    return flag, f"Remote config initialized successfully. isMoreData: {str(flag.is_more_data).lower()}"


class RemoteConfigClient:
    """Fetches the flag document once and caches the result.

    Concurrent callers share one in-flight initialization, so the cache is
    written exactly once. The in-flight fetch is published as a
    ``concurrent.futures.Future``: callers running on other event loops
    (worker threads under ``asyncio.run``) wait on it through
    ``asyncio.wrap_future`` instead of starting their own fetch.
    """

    def __init__(
        self,
        telemetry: TelemetrySink,
        *,
        url: str = DEFAULT_CONFIG_URL,
        session: aiohttp.ClientSession | None = None,
        timeout_s: float | None = None,
    ):
        self._telemetry = telemetry
        self._url = url
        self._session = session
        self._timeout_s = timeout_s
        self._cached: RemoteFlag | None = None
        self._in_flight: concurrent.futures.Future | None = None
        self._lock = threading.Lock()
        self.init_count = 0  # times the cache was written

    @property
    def is_initialized(self) -> bool:
        return self._cached is not None

    @property
    def cached(self) -> RemoteFlag | None:
        return self._cached

    async def initialize(self) -> RemoteFlag:
        while True:
            with self._lock:
                if self._cached is not None:
                    logger.debug("RemoteConfig: already initialized")
                    return self._cached
                fut = self._in_flight
                owner = fut is None
                if owner:
                    fut = self._in_flight = concurrent.futures.Future()

            if owner:
                return await self._run_owned(fut)

            try:
                # shield: a cancelled waiter must not cancel the shared future
                return await asyncio.shield(asyncio.wrap_future(fut))
            except asyncio.CancelledError:
                if not fut.cancelled():
                    raise
                # the owning caller was cancelled mid-fetch; take over

    async def get_flag(self) -> RemoteFlag:
        if self._cached is None:
            return await self.initialize()
        return self._cached

    async def _run_owned(self, fut: concurrent.futures.Future) -> RemoteFlag:
        try:
            flag = await self._initialize()
        except BaseException:
            # no flag was produced: release the slot so a waiter retries
            with self._lock:
                self._in_flight = None
            fut.cancel()
            raise
        stored = self._store(flag)
        if not fut.done():
            fut.set_result(stored)
        return stored

    async def _fetch(self) -> FetchResult:
        if self._session is not None:
            return await fetch_config(self._session, self._url, self._timeout_s)
        async with aiohttp.ClientSession() as session:
            return await fetch_config(session, self._url, self._timeout_s)

    async def _initialize(self) -> RemoteFlag:
        logger.info(f"RemoteConfig: fetching {self._url}")
        try:
            result = await self._fetch()
        except Exception as e:
            result = FetchResult(ErrorKind.NETWORK, detail=f"{type(e).__name__}: {e}")

        flag, message = resolve_flag(result)
        if result.ok:
            logger.info(f"RemoteConfig: isMoreData value: {flag.is_more_data}")
        else:
            logger.warning(f"RemoteConfig: fetch failed ({result.kind.value}) {result.detail}")
        self._telemetry.log_event(message)
        return flag

    def _store(self, flag: RemoteFlag) -> RemoteFlag:
        with self._lock:
            if self._cached is None:
                self._cached = flag
                self.init_count += 1
                self._in_flight = None
            return self._cached
