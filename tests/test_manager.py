"""CrashManager startup, user annotation and event logging."""

import sys

import pytest

from crash_router.annotator import UserContextAnnotator, UserInfo
from crash_router.manager import CrashManager
from crash_router.settings import Settings

from conftest import FakeConfigClient, flag_result


def _manager(crash, chat, telemetry, **settings):
    settings = Settings(_env_file=None, **settings)
    config = FakeConfigClient(telemetry, flag_result(False))
    return CrashManager(crash, chat, settings, telemetry=telemetry, config=config)


async def test_setup_outside_release_disables_collection(crash, chat, telemetry):
    manager = _manager(crash, chat, telemetry, release=False)
    hooks = await manager.setup()

    assert hooks is None
    assert crash.collection_enabled is False
    assert crash.performance_enabled is False
    assert not manager.config.is_initialized

async def test_setup_in_release_initializes_and_installs(crash, chat, telemetry):
    manager = _manager(crash, chat, telemetry, release=True)
    hooks = await manager.setup()
    try:
        assert hooks is not None and hooks.installed
        assert sys.excepthook == hooks.handle_uncaught
        assert manager.config.is_initialized
        assert crash.collection_enabled and crash.performance_enabled
    finally:
        manager.teardown()
    assert manager.hooks is None
    assert not hooks.installed

async def test_dev_variant_reaches_router(crash, chat, telemetry):
    manager = _manager(crash, chat, telemetry, build_variant="dev")
    assert manager.router._is_dev_variant is True

async def test_log_screen_and_event(crash, chat, telemetry):
    manager = _manager(crash, chat, telemetry)
    manager.log_screen("Picking")
    manager.log_event("order 7 scanned")
    assert crash.logs[-2:] == ["Navigating to Picking", "order 7 scanned"]

async def test_set_user_attaches_all_keys(crash, chat, telemetry):
    manager = _manager(crash, chat, telemetry, build_number="812")

    async def user():
        return UserInfo(name="Sam", email="sam@example.com")

    async def workspace():
        return "acme"

    async def device_id():
        return 1234

    attached = await manager.set_user(logged_in_user=user, workspace=workspace, device_id=device_id)
    assert crash.keys == {
        "name": "Sam",
        "user": "sam@example.com",
        "workspace": "acme",
        "buildNo": "812",
        "deviceId": "1234",
    }
    assert attached == crash.keys


async def test_annotator_is_best_effort(crash):
    async def no_user():
        return None

    async def broken():
        raise OSError("prefs unavailable")

    async def build():
        return "9"

    annotator = UserContextAnnotator(crash, build_number=build, logged_in_user=no_user, workspace=broken)
    attached = await annotator.annotate()

    assert "name" not in attached and "user" not in attached
    assert attached["workspace"] == ""
    assert attached["buildNo"] == "9"
    assert attached["deviceId"] == "None"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CRASH_ROUTER_BUILD_VARIANT", "dev")
    monkeypatch.setenv("CRASH_ROUTER_RELEASE", "false")
    settings = Settings(_env_file=None)
    assert settings.is_dev_variant
    assert settings.release is False
    assert settings.config_url.endswith("remoteConfig.json")
