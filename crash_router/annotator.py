"""Attach user, device and build metadata to the crash backend session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from crash_router.models import CrashBackend


@dataclass
class UserInfo:
    name: str
    email: str


Source = Callable[[], Awaitable[Any]]


async def _none() -> None:
    return None


class UserContextAnnotator:
    """One-shot annotation, run after a successful login.

    Each source is an async callable; a failing source or attachment is
    logged and the remaining keys are still attached.
    """

    def __init__(
        self,
        crash_backend: CrashBackend,
        *,
        build_number: Source,
        logged_in_user: Source = _none,
        workspace: Source = _none,
        device_id: Source = _none,
    ):
        self._crash = crash_backend
        self._build_number = build_number
        self._logged_in_user = logged_in_user
        self._workspace = workspace
        self._device_id = device_id

    async def annotate(self) -> dict[str, str]:
        """Attach every available key. Returns what was attached."""
        attached: dict[str, str] = {}

        user = await self._read("user", self._logged_in_user)
        if user is not None:
            await self._attach(attached, "name", getattr(user, "name", None))
            await self._attach(attached, "user", getattr(user, "email", None))

        await self._attach(attached, "workspace", await self._read("workspace", self._workspace))
        await self._attach(attached, "buildNo", await self._read("buildNo", self._build_number))
        # device ids are stringified even when missing
        device_id = await self._read("deviceId", self._device_id)
        await self._attach(attached, "deviceId", f"{device_id}")

        logger.info(f"UserContext: attached {sorted(attached)}")
        return attached

    async def _read(self, key: str, source: Source) -> Any:
        try:
            return await source()
        except Exception as e:
            logger.warning(f"UserContext: reading {key} failed: {e}")
            return None

    async def _attach(self, attached: dict[str, str], key: str, value: Any) -> None:
        value = "" if value is None else str(value)
        try:
            await self._crash.set_custom_key(key, value)
        except Exception as e:
            logger.warning(f"UserContext: setting {key} on {self._crash.name} failed: {e}")
            return
        attached[key] = value
