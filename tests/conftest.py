"""Shared fakes for the crash_router tests."""

import asyncio

import pytest

from crash_router.models import ChatWebhook, CrashBackend, ErrorKind, FetchResult
from crash_router.remote_config import RemoteConfigClient
from crash_router.telemetry import TelemetrySink


class FakeCrashBackend(CrashBackend):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.records: list[tuple[BaseException, object, bool]] = []
        self.keys: dict[str, str] = {}
        self.logs: list[str] = []
        self.collection_enabled = True
        self.performance_enabled = True

    async def set_custom_key(self, key, value):
        self.keys[key] = value

    async def record_error(self, error, stack=None, *, fatal=False):
        if self.fail:
            raise RuntimeError("crash backend down")
        self.records.append((error, stack, fatal))

    def log(self, message):
        self.logs.append(message)

    async def set_collection_enabled(self, enabled):
        self.collection_enabled = enabled

    async def set_performance_collection_enabled(self, enabled):
        self.performance_enabled = enabled


class FakeChatWebhook(ChatWebhook):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[BaseException, object, str]] = []

    async def send(self, error, stack, type_tag):
        if self.fail:
            raise RuntimeError("slack down")
        self.sent.append((error, stack, type_tag))


class FakeConfigClient(RemoteConfigClient):
    """RemoteConfigClient with the GET replaced by a canned result."""

    def __init__(self, telemetry, result: FetchResult):
        super().__init__(telemetry, url="http://config.invalid/remoteConfig.json")
        self.result = result
        self.fetches = 0

    async def _fetch(self):
        self.fetches += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class SlowConfigClient(FakeConfigClient):
    """Fetch that stays in flight long enough for callers to overlap."""

    delay = 0.05

    async def _fetch(self):
        await asyncio.sleep(self.delay)
        return await super()._fetch()


def flag_result(is_more_data: bool) -> FetchResult:
    return FetchResult(ErrorKind.OK, status=200, body={"isMoreData": is_more_data})


@pytest.fixture
def crash():
    return FakeCrashBackend()


@pytest.fixture
def chat():
    return FakeChatWebhook()


@pytest.fixture
def telemetry(crash):
    return TelemetrySink(crash)
