"""Routing policy: pure mapping from (event, flag, variant) to a decision.

The isMoreData flag is read as "skip the crash backend, use the chat
webhook instead".
"""

from crash_router.models import ErrorEvent, Origin, RemoteFlag, RoutingDecision


def decide(event: ErrorEvent, flag: RemoteFlag, *, is_dev_variant: bool) -> RoutingDecision:
    """Decide which backends receive this event."""
    more_data = flag.is_more_data

    if event.origin is Origin.FRAMEWORK:
        # Fatal framework errors always reach chat
        return RoutingDecision(
            send_to_crash_backend=not more_data,
            send_to_chat_webhook=True,
            reason="framework_fatal",
        )

    if event.origin is Origin.ISOLATE:
        return RoutingDecision(
            send_to_crash_backend=not more_data,
            send_to_chat_webhook=more_data,
            reason="isolate_fatal",
        )

    # Non-fatal path
    if more_data and not is_dev_variant:
        return RoutingDecision(
            send_to_crash_backend=True,
            send_to_chat_webhook=False,
            reason="variant_fallback",
        )
    return RoutingDecision(
        send_to_crash_backend=not more_data,
        send_to_chat_webhook=more_data and is_dev_variant,
        reason="non_fatal",
    )
