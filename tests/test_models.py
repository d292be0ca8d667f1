"""Basic structure tests for crash_router."""

import pytest


def test_imports():
    from crash_router import (
        CrashManager, ErrorEvent, ErrorRouter, RemoteConfigClient, RemoteFlag, RoutingDecision,
    )

def test_remote_flag_defaults_false():
    from crash_router import RemoteFlag
    assert RemoteFlag().is_more_data is False
    assert RemoteFlag.from_json({}).is_more_data is False
    assert RemoteFlag.from_json({"isMoreData": None}).is_more_data is False

def test_remote_flag_rejects_non_bool():
    from crash_router import RemoteFlag
    with pytest.raises(TypeError):
        RemoteFlag.from_json({"isMoreData": "yes"})

def test_routing_decision():
    from crash_router import RoutingDecision
    rd = RoutingDecision(send_to_crash_backend=False, send_to_chat_webhook=True, reason="framework_fatal")
    assert rd.send_to_chat_webhook
    assert not rd.send_to_crash_backend

def test_error_event_constructors():
    from crash_router import ErrorEvent, Origin, Severity
    try:
        raise ValueError("boom")
    except ValueError as e:
        err = e
    fatal = ErrorEvent.framework(err)
    assert fatal.severity is Severity.FATAL
    assert fatal.origin is Origin.FRAMEWORK
    assert fatal.stack is err.__traceback__
    assert fatal.type_tag == "f"

    non_fatal = ErrorEvent.uncaught_async(err)
    assert not non_fatal.is_fatal
    assert non_fatal.type_tag == "nf"

    assert ErrorEvent.isolate(err).origin is Origin.ISOLATE

def test_route_outcome_fell_back():
    from crash_router import DeliveryResult, ErrorKind, RouteOutcome
    outcome = RouteOutcome(deliveries=[
        DeliveryResult("chat", ErrorKind.BACKEND_FAILURE),
        DeliveryResult("crash", ErrorKind.OK, detail="fallback"),
    ])
    assert outcome.fell_back
    assert not RouteOutcome().fell_back
