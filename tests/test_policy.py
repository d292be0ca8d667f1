"""Routing policy table."""

import pytest

from crash_router.models import ErrorEvent, RemoteFlag
from crash_router.policy import decide


def _err():
    return RuntimeError("x")


@pytest.mark.parametrize("more_data, crash, chat", [(True, False, True), (False, True, True)])
def test_framework_fatal(more_data, crash, chat):
    d = decide(ErrorEvent.framework(_err()), RemoteFlag(more_data), is_dev_variant=False)
    assert (d.send_to_crash_backend, d.send_to_chat_webhook) == (crash, chat)
    assert d.reason == "framework_fatal"


@pytest.mark.parametrize("more_data, crash, chat", [(True, False, True), (False, True, False)])
def test_isolate_fatal(more_data, crash, chat):
    d = decide(ErrorEvent.isolate(_err()), RemoteFlag(more_data), is_dev_variant=True)
    assert (d.send_to_crash_backend, d.send_to_chat_webhook) == (crash, chat)


def test_non_fatal_dev_variant_goes_to_chat_only():
    d = decide(ErrorEvent.uncaught_async(_err()), RemoteFlag(True), is_dev_variant=True)
    assert not d.send_to_crash_backend
    assert d.send_to_chat_webhook


def test_non_fatal_other_variant_falls_back_to_crash():
    d = decide(ErrorEvent.uncaught_async(_err()), RemoteFlag(True), is_dev_variant=False)
    assert d.send_to_crash_backend
    assert not d.send_to_chat_webhook
    assert d.reason == "variant_fallback"


@pytest.mark.parametrize("dev", [True, False])
def test_non_fatal_without_flag_goes_to_crash_only(dev):
    d = decide(ErrorEvent.uncaught_async(_err()), RemoteFlag(False), is_dev_variant=dev)
    assert d.send_to_crash_backend
    assert not d.send_to_chat_webhook
