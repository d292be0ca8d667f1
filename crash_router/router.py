"""ErrorRouter: applies noise filters and the routing policy, then delivers."""

from loguru import logger

from crash_router.filters import NoiseFilter, suppression_reason
from crash_router.models import (
    ChatWebhook,
    CrashBackend,
    DeliveryResult,
    ErrorEvent,
    ErrorKind,
    RouteOutcome,
)
from crash_router.policy import decide
from crash_router.remote_config import RemoteConfigClient
from crash_router.telemetry import TelemetrySink


def _describe(event: ErrorEvent) -> str:
    return f"{type(event.error).__name__}: {event.error}"


class ErrorRouter:
    """Routes each error event to the crash backend, the chat webhook, both or neither.

    Delivery order is crash backend first, then chat. If the chat delivery
    fails the same error is recorded on the crash backend as non-fatal,
    unless the crash backend already has it. ``route`` never raises.
    """

    def __init__(
        self,
        config: RemoteConfigClient,
        crash_backend: CrashBackend,
        chat_webhook: ChatWebhook,
        telemetry: TelemetrySink,
        *,
        is_dev_variant: bool = False,
        filters: list[NoiseFilter] | None = None,
    ):
        self._config = config
        self._crash = crash_backend
        self._chat = chat_webhook
        self._telemetry = telemetry
        self._is_dev_variant = is_dev_variant
        self._filters = filters
        self.last_outcome: RouteOutcome | None = None

    async def route(self, event: ErrorEvent) -> RouteOutcome:
        try:
            outcome = await self._route(event)
        except Exception as e:
            logger.error(f"Routing failed for {_describe(event)}: {e}")
            self._telemetry.log_event(f"Error in routing {event.origin.value} error: {e}")
            outcome = RouteOutcome()
            outcome.deliveries.append(await self._record(event, fatal=False, detail="fallback"))
        self.last_outcome = outcome
        return outcome

    async def _route(self, event: ErrorEvent) -> RouteOutcome:
        label = f"{event.origin.value} {event.severity.value}"
        logger.info(f"CrashRouter: {label} error detected - {_describe(event)}")

        reason = suppression_reason(event, self._filters)
        if reason:
            logger.info(f"CrashRouter: ignoring {label} error ({reason})")
            self._telemetry.log_event(f"Suppressed {label} error: {reason}")
            return RouteOutcome(suppressed=reason)

        flag = await self._config.get_flag()
        decision = decide(event, flag, is_dev_variant=self._is_dev_variant)
        outcome = RouteOutcome(decision=decision)
        self._telemetry.log_event(
            f"Route {label} ({decision.reason}): isMoreData: {flag.is_more_data}, "
            f"crash: {decision.send_to_crash_backend}, chat: {decision.send_to_chat_webhook}"
        )

        crash_ok = False
        if decision.send_to_crash_backend:
            # variant_fallback is always recorded as non-fatal
            fatal = event.is_fatal and decision.reason != "variant_fallback"
            result = await self._record(event, fatal=fatal)
            outcome.deliveries.append(result)
            crash_ok = result.ok
        else:
            logger.info(f"CrashRouter: skipping {self._crash.name} for {label} error")

        if decision.send_to_chat_webhook:
            result = await self._notify(event)
            outcome.deliveries.append(result)
            if not result.ok and not crash_ok:
                logger.warning(f"CrashRouter: chat failed, falling back to {self._crash.name}")
                outcome.deliveries.append(await self._record(event, fatal=False, detail="fallback"))

        return outcome

    async def _record(self, event: ErrorEvent, *, fatal: bool, detail: str = "") -> DeliveryResult:
        try:
            await self._crash.record_error(event.error, event.stack, fatal=fatal)
        except Exception as e:
            logger.warning(f"Crash backend {self._crash.name} failed: {e}")
            self._telemetry.log_event(f"error in crash backend : {e}")
            return DeliveryResult("crash", ErrorKind.BACKEND_FAILURE, fatal=fatal, detail=str(e))
        self._telemetry.log_event(
            f"Sent {'fatal' if fatal else 'non-fatal'} error to {self._crash.name}"
            + (" (fallback)" if detail == "fallback" else "")
        )
        return DeliveryResult("crash", ErrorKind.OK, fatal=fatal, detail=detail)

    async def _notify(self, event: ErrorEvent) -> DeliveryResult:
        try:
            await self._chat.send(event.error, event.stack, event.type_tag)
        except Exception as e:
            logger.warning(f"Chat webhook {self._chat.name} failed: {e}")
            self._telemetry.log_event(f"error in chat webhook : {e}")
            return DeliveryResult("chat", ErrorKind.BACKEND_FAILURE, fatal=event.is_fatal, detail=str(e))
        self._telemetry.log_event(f"Sent {event.type_tag} error to {self._chat.name}")
        return DeliveryResult("chat", ErrorKind.OK, fatal=event.is_fatal)
