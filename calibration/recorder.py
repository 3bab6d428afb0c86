"""Record calibration patterns under front-light illumination."""

from __future__ import annotations

from depthcam.capture import DEFAULT_TIMEOUT_MS, CaptureOrchestrator, CaptureRequest
from depthcam.executor import (
    CMD_COLLECT_PATTERN,
    CMD_DISCARD_PATTERNS,
    ITM_CAMERAS,
    ITM_DECODE_DATA,
    CommandExecutor,
)
from depthcam.illumination import CaptureSettings
from depthcam.registry import DeviceHandle
from utils.error_tracker import (
    AcquisitionError,
    CalibrationCaptureError,
    DeviceCommandError,
    PropertyMissing,
)
from utils.logger import Logger, LoggerType


class PatternSet:
    """Count of the patterns currently held in the device pattern buffer."""

    def __init__(self) -> None:
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def record(self) -> None:
        self._count += 1

    def discard(self) -> None:
        self._count = 0

    def __len__(self) -> int:
        return self._count


class PatternRecorder:
    """
    Capture one front-lit stereo image and collect the pattern seen in it.

    FlexView is suspended and the projector swapped for the front light
    while capturing; both are restored when leaving, also on errors.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        capture: CaptureOrchestrator,
        stereo: DeviceHandle,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        logger: LoggerType | None = None,
    ) -> None:
        self.executor = executor
        self.capture = capture
        self.stereo = stereo
        self.timeout_ms = timeout_ms
        self.settings = CaptureSettings(executor, stereo)
        self.patterns = PatternSet()
        self.logger = logger or Logger.get_logger("calibration.recorder")

    def record(self) -> None:
        request = CaptureRequest(
            acquire_stereo=True,
            acquire_secondary=False,
            trigger=True,
            timeout_ms=self.timeout_ms,
        )
        try:
            with self.settings.flex_view_suspended():
                with self.settings.front_light_illumination():
                    retrieved = self.capture.capture(self.stereo, None, request)
                if not retrieved:
                    raise CalibrationCaptureError(
                        f"Camera {self.stereo.serial} delivered no pattern image"
                    )
                self.executor.execute(
                    CMD_COLLECT_PATTERN,
                    {ITM_CAMERAS: self.stereo.serial, ITM_DECODE_DATA: True},
                )
                # The device buffer holds the pattern from here on.
                self.patterns.record()
        except (AcquisitionError, DeviceCommandError, PropertyMissing) as exc:
            self.logger.error(f"Pattern recording failed: {exc}")
            raise CalibrationCaptureError(str(exc)) from exc
        self.logger.info(f"Recorded calibration pattern #{self.patterns.count}")

    def discard(self) -> None:
        """Drop every pattern stored on the device."""
        self.executor.execute(CMD_DISCARD_PATTERNS)
        self.patterns.discard()
        self.logger.debug("Discarded calibration patterns")
