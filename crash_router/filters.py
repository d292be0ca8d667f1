"""Environment-noise filters.

Each filter looks at an ErrorEvent and returns a short suppression reason,
or None to let the event through. Suppressed events reach neither backend.
"""

from __future__ import annotations

from typing import Callable, Optional

from crash_router.models import ErrorEvent, Origin

NoiseFilter = Callable[[ErrorEvent], Optional[str]]

IMAGE_RESOURCE_LIBRARY = "image resource service"
NO_SCANNER_CODE = "404"
NO_SCANNER_DESCRIPTION = "No barcode scanner found"
NETWORK_IMAGE_LOAD_ERROR = "NetworkImageLoadException"


def _type_names(error: BaseException) -> set[str]:
    return {cls.__name__ for cls in type(error).__mro__}


def is_missing_scanner(error: BaseException) -> bool:
    """Camera exception raised on devices without a barcode scanner."""
    return (
        str(getattr(error, "code", "")) == NO_SCANNER_CODE
        and getattr(error, "description", None) == NO_SCANNER_DESCRIPTION
    )


def image_resource_filter(event: ErrorEvent) -> str | None:
    if event.library == IMAGE_RESOURCE_LIBRARY:
        return "image_resource_service"
    return None


def missing_scanner_filter(event: ErrorEvent) -> str | None:
    if is_missing_scanner(event.error):
        return "no_barcode_scanner"
    return None


def network_image_filter(event: ErrorEvent) -> str | None:
    if event.origin is Origin.ISOLATE and NETWORK_IMAGE_LOAD_ERROR in _type_names(event.error):
        return "network_image_load"
    return None


DEFAULT_FILTERS: list[NoiseFilter] = [
    image_resource_filter,
    missing_scanner_filter,
    network_image_filter,
]


def suppression_reason(event: ErrorEvent, filters: list[NoiseFilter] | None = None) -> str | None:
    """Return the first matching suppression reason, if any."""
    for check in DEFAULT_FILTERS if filters is None else filters:
        reason = check(event)
        if reason:
            return reason
    return None
