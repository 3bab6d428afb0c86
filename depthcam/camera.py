"""Ensenso stereo camera session with an optional linked monocular camera."""

from __future__ import annotations

from contextlib import ExitStack
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np

from calibration.handeye import CalibrationResult, HandEyeCalibrator
from calibration.recorder import PatternRecorder
from calibration.workspace import WorkspaceCalibration, WorkspaceManager
from utils.error_tracker import AcquisitionError, DeviceNotFound
from utils.logger import Logger, LoggerType
from utils.settings import CameraCfg, camera as CAMERA_CFG

from .capture import CaptureOrchestrator, CaptureRequest
from .data import PointCloud, binary_size, load_parameter_file, to_image, to_point_cloud
from .executor import (
    CMD_COMPUTE_DISPARITY_MAP,
    CMD_COMPUTE_POINT_MAP,
    CMD_LOAD_UEYE_PARAMETER_SET,
    CMD_RENDER_POINT_MAP,
    ITM_CAMERA,
    ITM_CAMERAS,
    ITM_FILENAME,
    ITM_IMAGES,
    ITM_LEFT,
    ITM_NEAR,
    ITM_PARAMETERS,
    ITM_POINT_MAP,
    ITM_RAW,
    ITM_RECTIFIED,
    ITM_RENDER_POINT_MAP,
    ITM_USE_OPEN_GL,
    CommandExecutor,
)
from .illumination import CaptureSettings
from .registry import DeviceHandle, DeviceRegistry, DeviceSubsystem
from .roi import RegionOfInterest, set_region_of_interest


class EnsensoCamera:
    """
    One open stereo camera, plus the monocular camera linked to it if any.

    The constructor either returns a fully opened session or raises after
    closing whatever it had opened. Use as a context manager or call
    :meth:`close` exactly once.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        serial: Optional[str] = None,
        connect_monocular: Optional[bool] = None,
        cfg: CameraCfg | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        self.cfg = cfg or CAMERA_CFG
        self.executor = executor
        self.logger = logger or Logger.get_logger("depthcam.camera")
        self.registry = DeviceRegistry(executor)
        serial = self.cfg.serial if serial is None else serial
        if connect_monocular is None:
            connect_monocular = self.cfg.connect_monocular

        with ExitStack() as stack:
            stack.enter_context(DeviceSubsystem.scope(executor))
            self.stereo = self.registry.open(serial)
            stack.callback(self.registry.close, self.stereo)
            self.monocular: Optional[DeviceHandle] = None
            if connect_monocular:
                self.monocular = self.registry.open_linked(self.stereo)
                if self.monocular is not None:
                    stack.callback(self.registry.close, self.monocular)
            self._resources: Optional[ExitStack] = stack.pop_all()

        self.capturer = CaptureOrchestrator(executor)
        self.settings = CaptureSettings(executor, self.stereo)
        self.recorder = PatternRecorder(
            executor, self.capturer, self.stereo, timeout_ms=self.cfg.pattern_timeout_ms
        )
        self.workspace = WorkspaceManager(executor, self.stereo)
        self.handeye = HandEyeCalibrator(
            executor, self.stereo, self.recorder, self.workspace
        )
        self.logger.info(
            f"Camera session ready: stereo={self.serial_number} "
            f"monocular={self.monocular_serial_number or '-'}"
        )

    # Lifetime

    def close(self) -> None:
        """Close both cameras and release the SDK."""
        if self._resources is None:
            return
        resources, self._resources = self._resources, None
        resources.close()
        self.logger.info(f"Camera session {self.serial_number} closed")

    def __enter__(self) -> "EnsensoCamera":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Identity

    @property
    def serial_number(self) -> str:
        return self.stereo.serial

    @property
    def monocular_serial_number(self) -> str:
        """Serial of the linked monocular camera, empty without one."""
        return self.monocular.serial if self.monocular else ""

    @property
    def has_monocular(self) -> bool:
        return self.monocular is not None and self.monocular.present

    # Parameters

    def load_parameters(self, parameters_file: str | Path) -> None:
        """Load stereo parameters from JSON and dump the merged tree."""
        load_parameter_file(
            self.executor, self.stereo, parameters_file, self.cfg.parameters_dump
        )

    def load_monocular_parameters(self, parameters_file: str | Path) -> None:
        load_parameter_file(self.executor, self._require_monocular(), parameters_file)

    def load_monocular_ueye_parameters(self, parameters_file: str | Path) -> None:
        """Load a uEye INI parameter set into the monocular camera."""
        self._require_monocular()
        self.executor.execute(
            CMD_LOAD_UEYE_PARAMETER_SET, {ITM_FILENAME: str(parameters_file)}
        )

    def flex_view(self) -> int:
        return self.settings.flex_view()

    def set_flex_view(self, value: int) -> None:
        self.settings.set_flex_view(value)

    def set_front_light(self, state: bool) -> None:
        self.settings.set_front_light(state)

    def set_projector(self, state: bool) -> None:
        self.settings.set_projector(state)

    def set_region_of_interest(self, roi: Optional[RegionOfInterest]) -> None:
        set_region_of_interest(self.executor, self.stereo, roi)

    # Acquisition

    def capture(self, request: CaptureRequest) -> bool:
        return self.capturer.capture(self.stereo, self.monocular, request)

    def trigger(self, stereo: bool = True, monocular: bool = True) -> bool:
        return self.capturer.trigger(self.stereo, self.monocular, stereo, monocular)

    def retrieve(
        self,
        trigger: bool = True,
        timeout_ms: Optional[int] = None,
        stereo: bool = True,
        monocular: bool = True,
    ) -> bool:
        if timeout_ms is None:
            timeout_ms = self.cfg.capture_timeout_ms
        return self.capture(CaptureRequest(stereo, monocular, trigger, timeout_ms))

    def rectify_images(self) -> None:
        self.capturer.rectify(self.stereo)

    def _intensity_path(self) -> Tuple:
        if self.has_monocular:
            return self.monocular.path + (ITM_IMAGES, ITM_RAW)
        return self.stereo.path + (ITM_IMAGES, ITM_RECTIFIED, ITM_LEFT)

    def intensity_size(self) -> Tuple[int, int]:
        """``(width, height)`` of the last intensity image."""
        return binary_size(self.executor, self._intensity_path())

    def point_cloud_size(self) -> Tuple[int, int]:
        return binary_size(self.executor, self.stereo.path + (ITM_IMAGES, ITM_POINT_MAP))

    def load_intensity(self, capture: bool = True) -> np.ndarray:
        """
        Intensity image: the monocular raw image, or the rectified left
        stereo image when there is no monocular camera.
        """
        if capture:
            self._require_retrieved(
                self.retrieve(
                    trigger=True,
                    stereo=not self.has_monocular,
                    monocular=self.has_monocular,
                )
            )
        if not self.has_monocular:
            self.rectify_images()
        return to_image(self.executor, self._intensity_path())

    def _require_retrieved(self, retrieved: bool) -> None:
        if not retrieved:
            raise AcquisitionError(
                f"Capture on {self.serial_number} did not deliver new images"
            )

    def _compute_disparity(self, roi: Optional[RegionOfInterest], capture: bool) -> None:
        if capture:
            self._require_retrieved(self.retrieve())
        self.set_region_of_interest(roi)
        self.executor.execute(
            CMD_COMPUTE_DISPARITY_MAP, {ITM_CAMERAS: self.serial_number}
        )

    def load_point_cloud(
        self, roi: Optional[RegionOfInterest] = None, capture: bool = True
    ) -> PointCloud:
        """Point cloud in the stereo camera frame, restricted to ``roi``."""
        self._compute_disparity(roi, capture)
        self.executor.execute(CMD_COMPUTE_POINT_MAP, {ITM_CAMERAS: self.serial_number})
        return to_point_cloud(self.executor, self.stereo.path + (ITM_IMAGES, ITM_POINT_MAP))

    def load_registered_point_cloud(
        self, roi: Optional[RegionOfInterest] = None, capture: bool = True
    ) -> PointCloud:
        """Point cloud rendered into the monocular camera's view."""
        monocular = self._require_monocular()
        self._compute_disparity(roi, capture)
        # RenderPointMap output is corrupted with OpenGL enabled.
        self.executor.set(
            (ITM_PARAMETERS, ITM_RENDER_POINT_MAP, ITM_USE_OPEN_GL), False
        )
        self.executor.execute(
            CMD_RENDER_POINT_MAP, {ITM_NEAR: 1, ITM_CAMERA: monocular.serial}
        )
        return to_point_cloud(self.executor, (ITM_IMAGES, ITM_RENDER_POINT_MAP))

    # Calibration

    def discard_calibration_patterns(self) -> None:
        self.recorder.discard()

    def record_calibration_pattern(self) -> None:
        self.recorder.record()

    def detect_calibration_pattern(
        self, samples: int, compensate_workspace: bool = False
    ) -> np.ndarray:
        return self.handeye.detect_pattern(samples, compensate_workspace)

    def compute_calibration(
        self,
        robot_poses: Sequence[np.ndarray],
        moving: bool,
        camera_guess: Optional[np.ndarray] = None,
        pattern_guess: Optional[np.ndarray] = None,
        target: Optional[str] = None,
    ) -> CalibrationResult:
        return self.handeye.compute_calibration(
            robot_poses, moving, camera_guess, pattern_guess, target
        )

    def get_workspace_calibration_frame(self) -> str:
        return self.workspace.frame_name()

    def get_workspace_calibration(self) -> Optional[WorkspaceCalibration]:
        return self.workspace.get()

    def set_workspace_calibration(
        self,
        workspace: np.ndarray,
        frame_id: Optional[str] = None,
        defined_pose: Optional[np.ndarray] = None,
        store: bool = False,
    ) -> None:
        self.workspace.set(workspace, frame_id, defined_pose, store)

    def clear_workspace_calibration(self, store: bool = False) -> None:
        self.workspace.clear(store)

    def store_workspace_calibration(self) -> None:
        self.workspace.store()

    def _require_monocular(self) -> DeviceHandle:
        if not self.has_monocular:
            raise DeviceNotFound(f"No monocular camera linked to {self.serial_number}")
        return self.monocular
