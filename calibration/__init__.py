"""Calibration pattern recording, hand-eye and workspace calibration."""

from .handeye import CalibrationResult, HandEyeCalibrator
from .recorder import PatternRecorder, PatternSet
from .workspace import WorkspaceCalibration, WorkspaceManager, cleared_frame_name

__all__ = [
    "CalibrationResult",
    "HandEyeCalibrator",
    "PatternRecorder",
    "PatternSet",
    "WorkspaceCalibration",
    "WorkspaceManager",
    "cleared_frame_name",
]
