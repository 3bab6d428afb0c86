"""File I/O helpers for poses, images and calibration results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import cv2
import numpy as np

from .transform import euler_to_matrix, make_transform


class JSONPoseLoader:
    """Load robot poses for hand-eye calibration from a JSON file."""

    @staticmethod
    def load_poses(json_file: str | Path) -> List[np.ndarray]:
        """
        Return 4x4 base->tool transforms (meters) from ``json_file``.

        Each entry holds ``tcp_coords = [x, y, z, rx, ry, rz]`` with the
        position in millimeters and XYZ Euler angles in degrees, as written
        by the robot controller.
        """
        data = load_json(json_file)
        entries = data.values() if isinstance(data, dict) else data
        poses = []
        for pose in entries:
            tcp = pose["tcp_coords"]
            t = np.array(tcp[:3], dtype=np.float64) / 1000.0
            rx, ry, rz = tcp[3:6]
            poses.append(make_transform(euler_to_matrix(rx, ry, rz), t))
        return poses


def write_image(path: str | Path, img: np.ndarray) -> None:
    """Save an image to disk, creating the parent directory."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), img):
        raise IOError(f"Failed to write image {path}")


def load_json(path: str | Path) -> Any:
    """Load JSON data from ``path``."""
    with open(path, "r") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    """Write data as JSON to ``path``."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
