"""Device handles, device lookup and the process-wide SDK lifetime."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from utils.error_tracker import DeviceNotFound, PropertyMissing
from utils.logger import Logger, LoggerType

from .executor import (
    CAMERAS_ROOT,
    CMD_CLOSE,
    CMD_OPEN,
    ITM_CAMERAS,
    ITM_LINK,
    ITM_TARGET,
    ITM_TYPE,
    VAL_STEREO,
    CommandExecutor,
    TreePath,
)


@dataclass(frozen=True)
class DeviceHandle:
    """Identity of one opened sensor node."""

    serial: str
    present: bool = True

    @property
    def path(self) -> TreePath:
        """Device node in the SDK tree."""
        return CAMERAS_ROOT + (self.serial,)


class DeviceSubsystem:
    """
    Reference-counted SDK lifetime shared by all sessions in the process.

    The first scope to enter initializes the executor, the last one to
    leave finalizes it.
    """

    _lock = threading.Lock()
    _users = 0
    _logger = Logger.get_logger("depthcam.subsystem")

    @classmethod
    def acquire(cls, executor: CommandExecutor) -> None:
        with cls._lock:
            if cls._users == 0:
                executor.initialize()
                cls._logger.debug("Device subsystem initialized")
            cls._users += 1

    @classmethod
    def release(cls, executor: CommandExecutor) -> None:
        with cls._lock:
            if cls._users == 0:
                return
            cls._users -= 1
            if cls._users == 0:
                executor.finalize()
                cls._logger.debug("Device subsystem finalized")

    @classmethod
    def users(cls) -> int:
        return cls._users

    @classmethod
    @contextmanager
    def scope(cls, executor: CommandExecutor) -> Iterator[CommandExecutor]:
        cls.acquire(executor)
        try:
            yield executor
        finally:
            cls.release(executor)


class DeviceRegistry:
    """Find, open and close devices through the executor."""

    def __init__(
        self, executor: CommandExecutor, logger: LoggerType | None = None
    ) -> None:
        self.executor = executor
        self.logger = logger or Logger.get_logger("depthcam.registry")

    def _devices(self) -> Dict[str, Any]:
        try:
            devices = self.executor.get(CAMERAS_ROOT)
        except PropertyMissing:
            return {}
        return {
            serial: node for serial, node in devices.items() if isinstance(node, dict)
        }

    def _open(self, serial: str) -> DeviceHandle:
        self.executor.execute(CMD_OPEN, {ITM_CAMERAS: [serial]})
        self.logger.info(f"Opened camera {serial}")
        return DeviceHandle(serial)

    def open(self, serial: Optional[str] = None) -> DeviceHandle:
        """Open the camera with ``serial`` or, if empty, any stereo camera."""
        devices = self._devices()
        if not serial:
            for candidate, node in devices.items():
                if node.get(ITM_TYPE) == VAL_STEREO:
                    return self._open(candidate)
            raise DeviceNotFound("Please connect an Ensenso stereo camera.")
        if serial not in devices:
            raise DeviceNotFound(f"Could not find an Ensenso camera with serial {serial}")
        return self._open(serial)

    def open_linked(self, primary: DeviceHandle) -> Optional[DeviceHandle]:
        """Open the camera rigidly linked to ``primary``, if one is connected."""
        for serial, node in self._devices().items():
            if serial == primary.serial:
                continue
            link = node.get(ITM_LINK) or {}
            if link.get(ITM_TARGET) == primary.serial:
                return self._open(serial)
        self.logger.info(f"No camera linked to {primary.serial}")
        return None

    def close(self, handle: DeviceHandle) -> None:
        self.executor.execute(CMD_CLOSE, {ITM_CAMERAS: [handle.serial]})
        self.logger.info(f"Closed camera {handle.serial}")
