"""Command executor interface to the camera SDK.

Every component talks to the device through :class:`CommandExecutor`: a
command runner plus a path-addressed view of the SDK's configuration tree.
Paths are tuples of node names and list indices, e.g.
``("Cameras", "BySerialNo", "123", "Parameters", "Capture", "FlexView")``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Sequence, Tuple, Union

import numpy as np

Key = Union[str, int]
TreePath = Tuple[Key, ...]

# Commands
CMD_OPEN = "Open"
CMD_CLOSE = "Close"
CMD_TRIGGER = "Trigger"
CMD_CAPTURE = "Capture"
CMD_RETRIEVE = "Retrieve"
CMD_RECTIFY_IMAGES = "RectifyImages"
CMD_COMPUTE_DISPARITY_MAP = "ComputeDisparityMap"
CMD_COMPUTE_POINT_MAP = "ComputePointMap"
CMD_RENDER_POINT_MAP = "RenderPointMap"
CMD_DISCARD_PATTERNS = "DiscardPatterns"
CMD_COLLECT_PATTERN = "CollectPattern"
CMD_ESTIMATE_PATTERN_POSE = "EstimatePatternPose"
CMD_CALIBRATE_HAND_EYE = "CalibrateHandEye"
CMD_CALIBRATE_WORKSPACE = "CalibrateWorkspace"
CMD_STORE_CALIBRATION = "StoreCalibration"
CMD_LOAD_UEYE_PARAMETER_SET = "LoadUEyeParameterSet"

# Tree items
ITM_CAMERAS = "Cameras"
ITM_BY_SERIAL_NO = "BySerialNo"
ITM_TYPE = "Type"
ITM_PARAMETERS = "Parameters"
ITM_CAPTURE = "Capture"
ITM_FLEX_VIEW = "FlexView"
ITM_FRONT_LIGHT = "FrontLight"
ITM_PROJECTOR = "Projector"
ITM_TIMEOUT = "Timeout"
ITM_TRIGGERED = "Triggered"
ITM_RETRIEVED = "Retrieved"
ITM_IMAGES = "Images"
ITM_RAW = "Raw"
ITM_RECTIFIED = "Rectified"
ITM_LEFT = "Left"
ITM_POINT_MAP = "PointMap"
ITM_RENDER_POINT_MAP = "RenderPointMap"
ITM_USE_OPEN_GL = "UseOpenGL"
ITM_NEAR = "Near"
ITM_CAMERA = "Camera"
ITM_USE_DISPARITY_MAP_AOI = "UseDisparityMapAreaOfInterest"
ITM_DISPARITY_MAP = "DisparityMap"
ITM_AREA_OF_INTEREST = "AreaOfInterest"
ITM_LEFT_TOP = "LeftTop"
ITM_RIGHT_BOTTOM = "RightBottom"
ITM_DECODE_DATA = "DecodeData"
ITM_PATTERNS = "Patterns"
ITM_PATTERN_POSE = "PatternPose"
ITM_DEFINED_POSE = "DefinedPose"
ITM_LINK = "Link"
ITM_TARGET = "Target"
ITM_SETUP = "Setup"
ITM_TRANSFORMATIONS = "Transformations"
ITM_ITERATIONS = "Iterations"
ITM_REPROJECTION_ERROR = "ReprojectionError"
ITM_CALIBRATION = "Calibration"
ITM_FILENAME = "Filename"

# Values
VAL_STEREO = "Stereo"
VAL_MOVING = "Moving"
VAL_FIXED = "Fixed"

# Error symbols reported by failing commands
ERR_CAPTURE_TIMEOUT = "CaptureTimeout"

CAMERAS_ROOT: TreePath = (ITM_CAMERAS, ITM_BY_SERIAL_NO)


class CommandExecutor(ABC):
    """Narrow interface to the camera SDK."""

    @abstractmethod
    def initialize(self) -> None:
        """Start the SDK; called once per process by the device subsystem."""

    @abstractmethod
    def finalize(self) -> None:
        """Shut the SDK down."""

    @abstractmethod
    def execute(
        self, command: str, parameters: Mapping[str, Any] | None = None
    ) -> Dict[str, Any]:
        """
        Run ``command`` with a JSON-like parameter tree and return its result.

        Raises :class:`~utils.error_tracker.DeviceCommandError` carrying the
        device error symbol and text.
        """

    @abstractmethod
    def get(self, path: Sequence[Key]) -> Any:
        """Value (or subtree as dict/list) at ``path``; raises ``PropertyMissing``."""

    @abstractmethod
    def set(self, path: Sequence[Key], value: Any) -> None:
        """Write ``value`` at ``path``; mappings are merged into the subtree."""

    @abstractmethod
    def exists(self, path: Sequence[Key]) -> bool:
        """True when ``path`` is present in the tree."""

    @abstractmethod
    def erase(self, path: Sequence[Key]) -> None:
        """Remove the node at ``path`` together with its children."""

    @abstractmethod
    def get_binary(self, path: Sequence[Key]) -> np.ndarray:
        """Binary node payload as ``(height, width[, channels])`` array."""
