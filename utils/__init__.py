"""Shared helper modules used across the project.

The :mod:`utils` package contains the logger, configuration, error types,
CLI dispatching, rigid transform math and simple file I/O.
"""

from .logger import Logger, LoggerType
from .settings import CLOUD_EXT, IMAGE_EXT, camera, handeye, logging, paths, workspace
from .io import JSONPoseLoader, load_json, save_json, write_image
from .transform import (
    MM_PER_M,
    compose,
    decompose_transform,
    euler_to_matrix,
    invert_transform,
    make_transform,
    pose_from_nx,
    pose_to_nx,
    to_meters,
    to_millimeters,
)

__all__ = [
    "Logger",
    "LoggerType",
    "CLOUD_EXT",
    "IMAGE_EXT",
    "camera",
    "handeye",
    "logging",
    "paths",
    "workspace",
    "JSONPoseLoader",
    "load_json",
    "save_json",
    "write_image",
    "MM_PER_M",
    "compose",
    "decompose_transform",
    "euler_to_matrix",
    "invert_transform",
    "make_transform",
    "pose_from_nx",
    "pose_to_nx",
    "to_meters",
    "to_millimeters",
]
