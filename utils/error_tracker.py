"""Camera error taxonomy and centralized unhandled exception tracking."""

from __future__ import annotations

import signal
import sys
import traceback
from typing import Callable, List, Optional

from utils.logger import Logger


class CameraError(Exception):
    """Base class for camera related errors."""


class CameraConnectionError(CameraError):
    """Raised when the camera device cannot be opened."""


class DeviceNotFound(CameraConnectionError):
    """No connected device matches the requested type or serial."""


class DeviceCommandError(CameraError):
    """A device command failed on the device side."""

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if message else code)


class PropertyMissing(CameraError, KeyError):
    """A path in the device configuration tree does not exist."""

    def __init__(self, path) -> None:
        self.path = tuple(path)
        super().__init__("/".join(str(p) for p in self.path))

    def __str__(self) -> str:
        return f"Property missing: {'/'.join(str(p) for p in self.path)}"


class AcquisitionError(CameraError):
    """Capture or retrieve failed on the device."""


class AcquisitionTimeout(AcquisitionError):
    """No image arrived within the capture timeout."""


class CalibrationCaptureError(CameraError):
    """Recording a calibration pattern failed."""


class NoPatternDetected(CameraError):
    """Pose estimation found no calibration pattern."""


class InsufficientSamples(CameraError, ValueError):
    """Not enough (distinct) samples for the requested calibration."""


class CalibrationSolverError(CameraError):
    """The hand-eye solver did not converge or rejected its input."""

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"Hand-eye calibration failed ({code}): {message}")


class DataUnavailable(CameraError):
    """Image or point map payload could not be read from the device."""


class ErrorTracker:
    """Installable global exception hook that logs uncaught errors."""

    logger = Logger.get_logger("utils.error_tracker")
    _installed = False
    _orig_hook: Optional[Callable[..., None]] = None
    _cleanup_funcs: List[Callable[[], None]] = []

    @classmethod
    def register_cleanup(cls, func: Callable[[], None]) -> None:
        """Register a cleanup function executed on fatal errors."""
        cls._cleanup_funcs.append(func)

    @classmethod
    def run_cleanup(cls) -> None:
        """Run registered cleanups once, newest first."""
        funcs, cls._cleanup_funcs = cls._cleanup_funcs, []
        for func in reversed(funcs):
            try:
                func()
            except Exception as e:
                cls.logger.error(f"Cleanup failed: {e}")

    @classmethod
    def install_excepthook(cls) -> None:
        """Log unhandled exceptions through the project logger."""
        if cls._installed:
            return

        cls._orig_hook = sys.excepthook

        def _hook(exc_type, exc, tb) -> None:
            message = "".join(traceback.format_exception(exc_type, exc, tb))
            cls.logger.error(f"Unhandled exception:\n{message}")
            cls.run_cleanup()
            if cls._orig_hook:
                cls._orig_hook(exc_type, exc, tb)

        sys.excepthook = _hook
        cls._installed = True
        cls.logger.debug("Global exception hook installed")

    @classmethod
    def install_signal_handlers(cls) -> None:
        """Release devices and exit on SIGINT or SIGTERM."""

        def _handler(signum, frame) -> None:
            cls.logger.info(f"Received signal {signum}")
            cls.run_cleanup()
            raise SystemExit(1)

        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
