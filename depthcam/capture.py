"""Trigger and retrieve images on the stereo and linked monocular camera."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional

from utils.error_tracker import AcquisitionError, AcquisitionTimeout, DeviceCommandError
from utils.logger import Logger, LoggerType

from .executor import (
    CMD_CAPTURE,
    CMD_RECTIFY_IMAGES,
    CMD_RETRIEVE,
    CMD_TRIGGER,
    ERR_CAPTURE_TIMEOUT,
    ITM_CAMERAS,
    ITM_RETRIEVED,
    ITM_TIMEOUT,
    ITM_TRIGGERED,
    CommandExecutor,
)
from .registry import DeviceHandle

DEFAULT_TIMEOUT_MS = 1500


@dataclass(frozen=True)
class CaptureRequest:
    """Which devices to acquire from and how."""

    acquire_stereo: bool = True
    acquire_secondary: bool = True
    trigger: bool = True
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def narrowed(self, has_secondary: bool) -> "CaptureRequest":
        """Drop the secondary intent when no secondary device exists."""
        if self.acquire_secondary and not has_secondary:
            return replace(self, acquire_secondary=False)
        return self


def _has_device(handle: Optional[DeviceHandle]) -> bool:
    return handle is not None and handle.present


def addressed_serials(
    stereo: DeviceHandle, linked: Optional[DeviceHandle], request: CaptureRequest
) -> List[str]:
    """Serials in command order: stereo first, then the linked camera."""
    request = request.narrowed(_has_device(linked))
    serials = []
    if request.acquire_stereo:
        serials.append(stereo.serial)
    if request.acquire_secondary:
        serials.append(linked.serial)
    return serials


class CaptureOrchestrator:
    """Issue capture commands and fold per-device results into one flag."""

    def __init__(
        self, executor: CommandExecutor, logger: LoggerType | None = None
    ) -> None:
        self.executor = executor
        self.logger = logger or Logger.get_logger("depthcam.capture")

    def capture(
        self,
        stereo: DeviceHandle,
        linked: Optional[DeviceHandle],
        request: CaptureRequest,
    ) -> bool:
        """
        Acquire images and report whether every addressed camera delivered.

        Nothing addressed means nothing to do, which counts as success.
        """
        serials = addressed_serials(stereo, linked, request)
        if not serials:
            return True

        command = CMD_CAPTURE if request.trigger else CMD_RETRIEVE
        params = {ITM_TIMEOUT: int(request.timeout_ms), ITM_CAMERAS: serials}
        self.logger.debug(f"{command} {serials} timeout={request.timeout_ms}ms")
        try:
            result = self.executor.execute(command, params)
        except DeviceCommandError as exc:
            if exc.code == ERR_CAPTURE_TIMEOUT:
                self.logger.error(
                    f"{command} timed out after {request.timeout_ms} ms on {serials}"
                )
                raise AcquisitionTimeout(str(exc)) from exc
            self.logger.error(f"{command} failed on {serials}: {exc}")
            raise AcquisitionError(str(exc)) from exc

        return self._all_flagged(result, serials, ITM_RETRIEVED)

    def trigger(
        self,
        stereo: DeviceHandle,
        linked: Optional[DeviceHandle],
        acquire_stereo: bool = True,
        acquire_secondary: bool = True,
    ) -> bool:
        """Send a software trigger without waiting for the images."""
        request = CaptureRequest(acquire_stereo, acquire_secondary)
        serials = addressed_serials(stereo, linked, request)
        if not serials:
            return True
        try:
            result = self.executor.execute(CMD_TRIGGER, {ITM_CAMERAS: serials})
        except DeviceCommandError as exc:
            self.logger.error(f"Trigger failed on {serials}: {exc}")
            raise AcquisitionError(str(exc)) from exc
        return self._all_flagged(result, serials, ITM_TRIGGERED)

    def rectify(self, handle: DeviceHandle) -> None:
        self.executor.execute(CMD_RECTIFY_IMAGES, {ITM_CAMERAS: [handle.serial]})

    def _all_flagged(self, result: dict, serials: List[str], flag: str) -> bool:
        for serial in serials:
            if not bool((result.get(serial) or {}).get(flag, False)):
                self.logger.warning(f"Camera {serial} reported {flag}=false")
                return False
        return True
