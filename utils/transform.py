"""Rigid transform helpers and millimeter/meter conversion.

Poses are 4x4 homogeneous ``numpy`` arrays. Public APIs carry translations
in meters; the camera firmware expects millimeters and an angle-axis JSON
layout (``{"Rotation": {"Angle", "Axis"}, "Translation"}``).
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

__all__ = [
    "MM_PER_M",
    "euler_to_matrix",
    "make_transform",
    "decompose_transform",
    "invert_transform",
    "compose",
    "scale_translation",
    "to_millimeters",
    "to_meters",
    "pose_to_nx",
    "pose_from_nx",
]

MM_PER_M = 1000.0


def euler_to_matrix(
    rx: float, ry: float, rz: float, *, degrees: bool = True
) -> np.ndarray:
    """Return a rotation matrix from XYZ Euler angles."""
    return Rotation.from_euler("xyz", [rx, ry, rz], degrees=degrees).as_matrix()


def make_transform(R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Build a homogeneous transform from ``R`` and ``t``."""
    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = np.asarray(t, dtype=np.float64).flatten()
    return T


def decompose_transform(T: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return rotation matrix and translation vector of ``T``."""
    return T[:3, :3], T[:3, 3]


def invert_transform(T: np.ndarray) -> np.ndarray:
    """Inverse of a rigid transform (``R^T``, ``-R^T t``)."""
    R, t = decompose_transform(T)
    R_inv = R.T
    return make_transform(R_inv, -R_inv @ t)


def compose(*Ts: np.ndarray) -> np.ndarray:
    """Chain transforms left to right: ``compose(A, B) == A @ B``."""
    T_out = np.eye(4)
    for T in Ts:
        T_out = T_out @ T
    return T_out


def scale_translation(T: np.ndarray, factor: float) -> np.ndarray:
    """Copy of ``T`` with the translation multiplied by ``factor``."""
    out = np.array(T, dtype=np.float64, copy=True)
    out[:3, 3] *= factor
    return out


def to_millimeters(T: np.ndarray) -> np.ndarray:
    return scale_translation(T, MM_PER_M)


def to_meters(T: np.ndarray) -> np.ndarray:
    return scale_translation(T, 1.0 / MM_PER_M)


def pose_to_nx(T: np.ndarray) -> Dict[str, Any]:
    """
    Serialize ``T`` to the firmware's transformation layout.

    No unit conversion happens here; call :func:`to_millimeters` first.
    """
    R, t = decompose_transform(np.asarray(T, dtype=np.float64))
    rotvec = Rotation.from_matrix(R).as_rotvec()
    angle = float(np.linalg.norm(rotvec))
    axis = rotvec / angle if angle > 0.0 else np.array([1.0, 0.0, 0.0])
    return {
        "Rotation": {"Angle": angle, "Axis": [float(a) for a in axis]},
        "Translation": [float(v) for v in t],
    }


def pose_from_nx(node: Mapping[str, Any]) -> np.ndarray:
    """Parse the firmware's transformation layout into a 4x4 transform."""
    rotation = node["Rotation"]
    axis = np.asarray(rotation["Axis"], dtype=np.float64)
    norm = np.linalg.norm(axis)
    rotvec = axis / norm * float(rotation["Angle"]) if norm > 0.0 else np.zeros(3)
    R = Rotation.from_rotvec(rotvec).as_matrix()
    return make_transform(R, np.asarray(node["Translation"], dtype=np.float64))
