"""Camera-to-workspace calibration stored in the camera link."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from depthcam.executor import (
    CMD_CALIBRATE_WORKSPACE,
    CMD_STORE_CALIBRATION,
    ITM_CALIBRATION,
    ITM_CAMERAS,
    ITM_DEFINED_POSE,
    ITM_LINK,
    ITM_PATTERN_POSE,
    ITM_TARGET,
    CommandExecutor,
)
from depthcam.registry import DeviceHandle
from utils.error_tracker import PropertyMissing
from utils.logger import Logger, LoggerType
from utils.transform import pose_from_nx, pose_to_nx, to_meters, to_millimeters


@dataclass(frozen=True)
class WorkspaceCalibration:
    """Active workspace frame and the camera link transform (meters)."""

    frame_name: str
    transform: np.ndarray


def cleared_frame_name(serial: str) -> str:
    """Frame name the camera carries when no workspace is calibrated."""
    return f"{serial}_frame"


class WorkspaceManager:
    """Set, clear, persist and read the workspace calibration of one camera."""

    def __init__(
        self,
        executor: CommandExecutor,
        stereo: DeviceHandle,
        logger: LoggerType | None = None,
    ) -> None:
        self.executor = executor
        self.stereo = stereo
        self.logger = logger or Logger.get_logger("calibration.workspace")

    @property
    def _link(self):
        return self.stereo.path + (ITM_LINK,)

    def frame_name(self) -> str:
        try:
            value = self.executor.get(self._link + (ITM_TARGET,))
        except PropertyMissing:
            return ""
        return value if isinstance(value, str) else ""

    def is_active(self) -> bool:
        name = self.frame_name()
        return bool(name) and name != cleared_frame_name(self.stereo.serial)

    def get(self) -> Optional[WorkspaceCalibration]:
        if not self.is_active():
            return None
        link = pose_from_nx(self.executor.get(self._link))
        return WorkspaceCalibration(self.frame_name(), to_meters(link))

    def set(
        self,
        workspace: np.ndarray,
        frame_id: Optional[str] = None,
        defined_pose: Optional[np.ndarray] = None,
        store: bool = False,
    ) -> None:
        """
        Calibrate the workspace from a pattern pose (camera frame, meters).

        ``defined_pose`` is the pose the pattern should have in the new
        workspace frame; identity puts the workspace origin on the pattern.
        """
        if defined_pose is None:
            defined_pose = np.eye(4)
        params = {
            ITM_CAMERAS: [self.stereo.serial],
            ITM_PATTERN_POSE: pose_to_nx(to_millimeters(workspace)),
            ITM_DEFINED_POSE: pose_to_nx(to_millimeters(defined_pose)),
        }
        if frame_id:
            params[ITM_TARGET] = frame_id
        self.executor.execute(CMD_CALIBRATE_WORKSPACE, params)
        self.logger.info(
            f"Workspace calibration set on {self.stereo.serial} "
            f"(frame={frame_id or self.frame_name()})"
        )
        if store:
            self.store()

    def clear(self, store: bool = False) -> None:
        if not self.is_active():
            return

        # CalibrateWorkspace without poses resets the link geometry.
        self.executor.execute(
            CMD_CALIBRATE_WORKSPACE,
            {ITM_CAMERAS: [self.stereo.serial], ITM_TARGET: ""},
        )
        # The target name survives the command above.
        self.executor.set(
            self._link + (ITM_TARGET,), cleared_frame_name(self.stereo.serial)
        )
        self.logger.info(f"Workspace calibration cleared on {self.stereo.serial}")
        if store:
            self.store()

    def store(self) -> None:
        """Write calibration and link to the camera EEPROM, overwriting it."""
        self.executor.execute(
            CMD_STORE_CALIBRATION,
            {
                ITM_CAMERAS: [self.stereo.serial],
                ITM_CALIBRATION: True,
                ITM_LINK: True,
            },
        )
        self.logger.info(f"Stored calibration of {self.stereo.serial}")
