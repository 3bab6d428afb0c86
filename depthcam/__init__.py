"""Ensenso stereo camera access through a narrow command executor.

The package wraps device lookup, region of interest, capture and data
extraction. :class:`depthcam.camera.EnsensoCamera` composes them with the
calibration components into one session; import it from
:mod:`depthcam.camera` directly. The NxLib-backed executor lives in
:mod:`depthcam.nxlib_executor` and needs the ``ensenso-nxlib`` extra.
"""

from .capture import CaptureOrchestrator, CaptureRequest
from .data import PointCloud, binary_size, load_parameter_file, to_image, to_point_cloud
from .executor import CommandExecutor
from .illumination import FLEX_VIEW_DISABLED, CaptureSettings
from .registry import DeviceHandle, DeviceRegistry, DeviceSubsystem
from .roi import RegionOfInterest, set_region_of_interest

__all__ = [
    "CaptureOrchestrator",
    "CaptureRequest",
    "CaptureSettings",
    "CommandExecutor",
    "DeviceHandle",
    "DeviceRegistry",
    "DeviceSubsystem",
    "FLEX_VIEW_DISABLED",
    "PointCloud",
    "RegionOfInterest",
    "binary_size",
    "load_parameter_file",
    "set_region_of_interest",
    "to_image",
    "to_point_cloud",
]
