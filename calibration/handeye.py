"""Pattern pose estimation and hand-eye calibration on the camera."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from depthcam.executor import (
    CMD_CALIBRATE_HAND_EYE,
    CMD_ESTIMATE_PATTERN_POSE,
    ITM_ITERATIONS,
    ITM_LINK,
    ITM_PATTERN_POSE,
    ITM_PATTERNS,
    ITM_REPROJECTION_ERROR,
    ITM_SETUP,
    ITM_TARGET,
    ITM_TRANSFORMATIONS,
    VAL_FIXED,
    VAL_MOVING,
    CommandExecutor,
)
from depthcam.illumination import CaptureSettings
from depthcam.registry import DeviceHandle
from utils.error_tracker import (
    CalibrationSolverError,
    DeviceCommandError,
    InsufficientSamples,
    NoPatternDetected,
)
from utils.logger import Logger, LoggerType
from utils.transform import (
    compose,
    invert_transform,
    pose_from_nx,
    pose_to_nx,
    to_meters,
    to_millimeters,
)

from .recorder import PatternRecorder
from .workspace import WorkspaceManager

MIN_POSES = 3


def _frozen(T: np.ndarray) -> np.ndarray:
    out = np.array(T, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class CalibrationResult:
    """Solved hand-eye calibration, translations in meters."""

    camera_pose: np.ndarray
    pattern_pose: np.ndarray
    iterations: int
    reprojection_error: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "camera_pose", _frozen(self.camera_pose))
        object.__setattr__(self, "pattern_pose", _frozen(self.pattern_pose))

    def to_dict(self) -> dict:
        return {
            "camera_pose": self.camera_pose.tolist(),
            "pattern_pose": self.pattern_pose.tolist(),
            "iterations": self.iterations,
            "reprojection_error": self.reprojection_error,
        }


def count_distinct(poses: Sequence[np.ndarray], atol: float = 1e-9) -> int:
    """Number of poses that differ from every earlier one."""
    distinct: List[np.ndarray] = []
    for pose in poses:
        if not any(np.allclose(pose, seen, atol=atol) for seen in distinct):
            distinct.append(pose)
    return len(distinct)


class HandEyeCalibrator:
    """Hand-eye calibration driven through the camera's own solver."""

    def __init__(
        self,
        executor: CommandExecutor,
        stereo: DeviceHandle,
        recorder: PatternRecorder,
        workspace: WorkspaceManager,
        logger: LoggerType | None = None,
    ) -> None:
        self.executor = executor
        self.stereo = stereo
        self.recorder = recorder
        self.workspace = workspace
        self.settings = CaptureSettings(executor, stereo)
        self.logger = logger or Logger.get_logger("calibration.handeye")

    def detect_pattern(
        self, samples: int, compensate_workspace: bool = False
    ) -> np.ndarray:
        """
        Pattern pose in the camera frame averaged over ``samples`` images.

        With ``compensate_workspace`` and an active workspace calibration
        the pose is expressed in the workspace frame instead.
        """
        if samples < 1:
            raise InsufficientSamples(f"samples must be >= 1, got {samples}")

        self.recorder.discard()
        for _ in Logger.progress(range(samples), desc="Recording patterns"):
            self.recorder.record()

        # EstimatePatternPose fails under FlexView too.
        with self.settings.flex_view_suspended():
            result = self.executor.execute(CMD_ESTIMATE_PATTERN_POSE)

        patterns = result.get(ITM_PATTERNS) or []
        if not patterns or ITM_PATTERN_POSE not in patterns[0]:
            raise NoPatternDetected(
                f"No calibration pattern found in {samples} image(s)"
            )
        pose = to_meters(pose_from_nx(patterns[0][ITM_PATTERN_POSE]))

        if compensate_workspace:
            calibration = self.workspace.get()
            if calibration is not None:
                pose = compose(calibration.transform, pose)
        self.logger.info(f"Pattern at t={np.round(pose[:3, 3], 4).tolist()} m")
        return pose

    def compute_calibration(
        self,
        robot_poses: Sequence[np.ndarray],
        moving: bool,
        camera_guess: Optional[np.ndarray] = None,
        pattern_guess: Optional[np.ndarray] = None,
        target: Optional[str] = None,
    ) -> CalibrationResult:
        """
        Solve hand-eye calibration from the recorded patterns.

        ``robot_poses[i]`` is the base->hand pose at the time pattern ``i``
        was recorded. ``moving`` means camera in hand; otherwise the camera
        is fixed and the pattern rides on the robot. The guesses are camera
        and pattern relative to hand (moving) or robot base (fixed).
        """
        poses = [np.asarray(p, dtype=np.float64) for p in robot_poses]
        distinct = count_distinct(poses)
        if distinct < MIN_POSES:
            raise InsufficientSamples(
                f"Need at least {MIN_POSES} distinct robot poses, got {distinct}"
            )
        recorded = self.recorder.patterns.count
        if recorded != len(poses):
            raise InsufficientSamples(
                f"{len(poses)} robot poses given but {recorded} patterns recorded"
            )

        params = {
            ITM_SETUP: VAL_MOVING if moving else VAL_FIXED,
            ITM_TRANSFORMATIONS: [pose_to_nx(to_millimeters(p)) for p in poses],
        }
        if camera_guess is not None:
            params[ITM_LINK] = pose_to_nx(to_millimeters(camera_guess))
        if pattern_guess is not None:
            params[ITM_PATTERN_POSE] = pose_to_nx(to_millimeters(pattern_guess))
        if target:
            params[ITM_TARGET] = target

        self.logger.info(
            f"Hand-eye calibration with {len(poses)} poses "
            f"({'moving' if moving else 'fixed'} camera)"
        )
        try:
            result = self.executor.execute(CMD_CALIBRATE_HAND_EYE, params)
        except DeviceCommandError as exc:
            self.logger.error(f"Hand-eye solver failed: {exc}")
            raise CalibrationSolverError(exc.code, exc.message) from exc

        # The stored link maps into the camera; invert it for the camera pose.
        link = pose_from_nx(self.executor.get(self.stereo.path + (ITM_LINK,)))
        calibration = CalibrationResult(
            camera_pose=to_meters(invert_transform(link)),
            pattern_pose=to_meters(pose_from_nx(result[ITM_PATTERN_POSE])),
            iterations=int(result[ITM_ITERATIONS]),
            reprojection_error=float(result[ITM_REPROJECTION_ERROR]),
        )
        self.logger.info(
            f"Hand-eye done: {calibration.iterations} iterations, "
            f"reprojection error {calibration.reprojection_error:.4f}"
        )
        return calibration
