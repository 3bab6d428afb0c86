"""Images, point maps and parameter files read from or written to the camera."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple

import numpy as np
import open3d as o3d

from utils.error_tracker import DataUnavailable, DeviceCommandError, PropertyMissing
from utils.io import load_json, save_json
from utils.logger import Logger
from utils.transform import MM_PER_M

from .executor import ITM_PARAMETERS, CommandExecutor, Key
from .registry import DeviceHandle

logger = Logger.get_logger("depthcam.data")


@dataclass(frozen=True)
class PointCloud:
    """Organized point cloud in meters; invalid pixels are NaN."""

    points: np.ndarray

    @property
    def height(self) -> int:
        return int(self.points.shape[0])

    @property
    def width(self) -> int:
        return int(self.points.shape[1])

    @property
    def size(self) -> Tuple[int, int]:
        """``(width, height)``"""
        return self.width, self.height

    def valid_points(self) -> np.ndarray:
        """``(N, 3)`` array of finite points."""
        flat = self.points.reshape(-1, 3)
        return flat[np.all(np.isfinite(flat), axis=1)]

    def to_open3d(self) -> o3d.geometry.PointCloud:
        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(self.valid_points())
        return pcd

    def save_ply(self, filename: str | Path) -> None:
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        o3d.io.write_point_cloud(str(filename), self.to_open3d())


def _read_binary(executor: CommandExecutor, path: Sequence[Key]) -> np.ndarray:
    try:
        data = executor.get_binary(path)
    except (PropertyMissing, DeviceCommandError) as exc:
        raise DataUnavailable(f"No data at {'/'.join(map(str, path))}") from exc
    if data is None or data.ndim < 2 or data.size == 0:
        raise DataUnavailable(f"Empty data at {'/'.join(map(str, path))}")
    return data


def binary_size(executor: CommandExecutor, path: Sequence[Key]) -> Tuple[int, int]:
    """``(width, height)`` of a binary node."""
    data = _read_binary(executor, path)
    return int(data.shape[1]), int(data.shape[0])


def to_image(executor: CommandExecutor, path: Sequence[Key]) -> np.ndarray:
    return np.array(_read_binary(executor, path), copy=True)


def to_point_cloud(executor: CommandExecutor, path: Sequence[Key]) -> PointCloud:
    """Convert a millimeter point map node into a :class:`PointCloud`."""
    data = _read_binary(executor, path)
    if data.ndim != 3 or data.shape[2] != 3:
        raise DataUnavailable(f"Unexpected point map shape {data.shape}")
    points = data.astype(np.float64) / MM_PER_M
    return PointCloud(points)


def load_parameter_file(
    executor: CommandExecutor,
    handle: DeviceHandle,
    parameters_file: str | Path,
    dump_file: str | Path | None = None,
) -> None:
    """
    Merge a JSON parameter file into the camera's ``Parameters`` node.

    When ``dump_file`` is given the merged parameter tree is written there,
    overwriting the previous dump.
    """
    node = handle.path + (ITM_PARAMETERS,)
    params = load_json(parameters_file)
    if isinstance(params, dict) and ITM_PARAMETERS in params:
        params = params[ITM_PARAMETERS]
    executor.set(node, params)
    logger.info(f"Loaded parameters for {handle.serial} from {parameters_file}")
    if dump_file is not None:
        save_json(dump_file, executor.get(node))
        logger.debug(f"Parameter tree of {handle.serial} written to {dump_file}")
