"""Disparity map area of interest."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .executor import (
    ITM_AREA_OF_INTEREST,
    ITM_CAPTURE,
    ITM_DISPARITY_MAP,
    ITM_LEFT_TOP,
    ITM_PARAMETERS,
    ITM_RIGHT_BOTTOM,
    ITM_USE_DISPARITY_MAP_AOI,
    CommandExecutor,
)
from .registry import DeviceHandle


@dataclass(frozen=True)
class RegionOfInterest:
    """Pixel rectangle of the stereo pair; ``bottom_right`` is exclusive."""

    top_left: Tuple[int, int]
    bottom_right: Tuple[int, int]

    @classmethod
    def from_rect(cls, x: int, y: int, width: int, height: int) -> "RegionOfInterest":
        return cls((x, y), (x + width, y + height))

    @property
    def width(self) -> int:
        return self.bottom_right[0] - self.top_left[0]

    @property
    def height(self) -> int:
        return self.bottom_right[1] - self.top_left[1]

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)


def is_unrestricted(roi: Optional[RegionOfInterest]) -> bool:
    return roi is None or roi.area == 0


def set_region_of_interest(
    executor: CommandExecutor,
    handle: DeviceHandle,
    roi: Optional[RegionOfInterest],
) -> None:
    """
    Restrict disparity computation to ``roi``.

    ``None`` (or an empty rectangle) turns the restriction off and erases
    the stored geometry so that it cannot come back on a later capture.
    """
    flag = handle.path + (ITM_PARAMETERS, ITM_CAPTURE, ITM_USE_DISPARITY_MAP_AOI)
    aoi = handle.path + (ITM_PARAMETERS, ITM_DISPARITY_MAP, ITM_AREA_OF_INTEREST)

    if is_unrestricted(roi):
        executor.set(flag, False)
        if executor.exists(aoi):
            executor.erase(aoi)
        return

    executor.set(flag, True)
    executor.set(aoi + (ITM_LEFT_TOP, 0), int(roi.top_left[0]))
    executor.set(aoi + (ITM_LEFT_TOP, 1), int(roi.top_left[1]))
    executor.set(aoi + (ITM_RIGHT_BOTTOM, 0), int(roi.bottom_right[0]))
    executor.set(aoi + (ITM_RIGHT_BOTTOM, 1), int(roi.bottom_right[1]))
