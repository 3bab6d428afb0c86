"""In-memory stand-in for the camera SDK used by the tests."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Sequence

import cv2
import numpy as np

from depthcam.executor import CommandExecutor
from utils.error_tracker import DeviceCommandError, PropertyMissing
from utils.transform import (
    compose,
    invert_transform,
    make_transform,
    pose_from_nx,
    pose_to_nx,
    to_millimeters,
)

STEREO_SERIAL = "160123"
MONO_SERIAL = "4103456789"


def _identity_link(target: str) -> Dict[str, Any]:
    link = pose_to_nx(np.eye(4))
    link["Target"] = target
    return link


class FakeEnsenso(CommandExecutor):
    """
    Nested-dict device tree with a small command interpreter.

    Every command and property write is appended to ``log`` so tests can
    check ordering. ``fail`` maps a command name to the error its next
    execution raises. Pattern observations come from ``visible_pattern``
    (camera frame, meters) or, when ``truth`` is set, from the robot pose in
    ``robot_pose`` and the ground-truth hand-eye setup.
    """

    def __init__(
        self,
        stereo_serial: str = STEREO_SERIAL,
        mono_serial: Optional[str] = MONO_SERIAL,
        size: tuple = (64, 48),
    ) -> None:
        self.stereo_serial = stereo_serial
        self.mono_serial = mono_serial
        self.width, self.height = size
        cameras: Dict[str, Any] = {
            stereo_serial: {
                "SerialNumber": stereo_serial,
                "Type": "Stereo",
                "Status": {"Open": False},
                "Link": _identity_link(""),
                "Parameters": {
                    "Capture": {"FlexView": False, "FrontLight": False, "Projector": True}
                },
            }
        }
        if mono_serial:
            cameras[mono_serial] = {
                "SerialNumber": mono_serial,
                "Type": "Monocular",
                "Status": {"Open": False},
                "Link": _identity_link(stereo_serial),
                "Parameters": {},
            }
        self.tree: Dict[str, Any] = {
            "Cameras": {"BySerialNo": cameras},
            "Parameters": {},
        }
        self.binary: Dict[tuple, np.ndarray] = {}
        self.log: List[tuple] = []
        self.fail: Dict[str, DeviceCommandError] = {}
        self.not_retrieved: set = set()
        self.initialized = 0
        self.finalized = 0
        self.patterns: List[np.ndarray] = []
        self.eeprom: Optional[Dict[str, Any]] = None
        self.visible_pattern: Optional[np.ndarray] = make_transform(
            np.eye(3), np.array([0.05, -0.02, 0.8])
        )
        self.truth: Optional[dict] = None
        self.robot_pose: Optional[np.ndarray] = None

    # Inspection helpers

    def commands(self) -> List[str]:
        return [entry[1] for entry in self.log if entry[0] == "execute"]

    def params_of(self, command: str) -> List[dict]:
        return [e[2] for e in self.log if e[0] == "execute" and e[1] == command]

    def camera_path(self, serial: str) -> tuple:
        return ("Cameras", "BySerialNo", serial)

    # Tree access

    def _node(self, path: Sequence[Any]) -> Any:
        node: Any = self.tree
        for key in path:
            try:
                node = node[key]
            except (KeyError, IndexError, TypeError):
                raise PropertyMissing(path) from None
            if node is None:
                raise PropertyMissing(path)
        return node

    def initialize(self) -> None:
        self.initialized += 1

    def finalize(self) -> None:
        self.finalized += 1

    def get(self, path: Sequence[Any]) -> Any:
        return copy.deepcopy(self._node(path))

    def set(self, path: Sequence[Any], value: Any) -> None:
        self.log.append(("set", tuple(path), copy.deepcopy(value)))
        self._write(path, copy.deepcopy(value))

    def _write(self, path: Sequence[Any], value: Any) -> None:
        node: Any = self.tree
        for key, nxt in zip(path[:-1], path[1:]):
            empty: Any = [] if isinstance(nxt, int) else {}
            if isinstance(node, list):
                while len(node) <= key:
                    node.append(None)
                if node[key] is None:
                    node[key] = empty
            elif not isinstance(node.get(key), (dict, list)):
                node[key] = empty
            node = node[key]
        last = path[-1]
        if isinstance(node, list):
            while len(node) <= last:
                node.append(None)
            node[last] = value
        elif isinstance(value, Mapping) and isinstance(node.get(last), dict):
            self._merge(node[last], value)
        else:
            node[last] = value

    def _merge(self, target: dict, source: Mapping) -> None:
        for key, value in source.items():
            if isinstance(value, Mapping) and isinstance(target.get(key), dict):
                self._merge(target[key], value)
            else:
                target[key] = value

    def exists(self, path: Sequence[Any]) -> bool:
        try:
            self._node(path)
        except PropertyMissing:
            return False
        return True

    def erase(self, path: Sequence[Any]) -> None:
        self.log.append(("erase", tuple(path)))
        parent = self._node(path[:-1])
        del parent[path[-1]]

    def get_binary(self, path: Sequence[Any]) -> np.ndarray:
        try:
            return self.binary[tuple(path)]
        except KeyError:
            raise PropertyMissing(path) from None

    # Commands

    def execute(
        self, command: str, parameters: Mapping[str, Any] | None = None
    ) -> Dict[str, Any]:
        params = copy.deepcopy(dict(parameters or {}))
        self.log.append(("execute", command, params))
        if command in self.fail:
            raise self.fail.pop(command)
        handler = getattr(self, f"_cmd_{command}", None)
        return handler(params) if handler else {}

    @staticmethod
    def _serials(params: dict) -> List[str]:
        cameras = params.get("Cameras", [])
        return [cameras] if isinstance(cameras, str) else list(cameras)

    def _cmd_Open(self, params: dict) -> dict:
        for serial in self._serials(params):
            if serial not in self.tree["Cameras"]["BySerialNo"]:
                raise DeviceCommandError("CameraNotFound", serial)
            self.tree["Cameras"]["BySerialNo"][serial]["Status"]["Open"] = True
        return {}

    def _cmd_Close(self, params: dict) -> dict:
        for serial in self._serials(params):
            self.tree["Cameras"]["BySerialNo"][serial]["Status"]["Open"] = False
        return {}

    def _cmd_Trigger(self, params: dict) -> dict:
        return {serial: {"Triggered": True} for serial in self._serials(params)}

    def _cmd_Capture(self, params: dict) -> dict:
        result = {}
        for serial in self._serials(params):
            ok = serial not in self.not_retrieved
            if ok:
                self._store_images(serial)
            result[serial] = {"Retrieved": ok}
        return result

    _cmd_Retrieve = _cmd_Capture

    def _store_images(self, serial: str) -> None:
        path = self.camera_path(serial) + ("Images", "Raw")
        if serial == self.stereo_serial:
            left = np.full((self.height, self.width), 120, np.uint8)
            self.binary[path + ("Left",)] = left
            self.binary[path + ("Right",)] = left.copy()
        else:
            self.binary[path] = np.full((self.height, self.width, 3), 90, np.uint8)

    def _cmd_RectifyImages(self, params: dict) -> dict:
        for serial in self._serials(params):
            raw = self.camera_path(serial) + ("Images", "Raw", "Left")
            if raw in self.binary:
                rect = self.camera_path(serial) + ("Images", "Rectified", "Left")
                self.binary[rect] = self.binary[raw].copy()
        return {}

    def _point_map(self) -> np.ndarray:
        xs, ys = np.meshgrid(
            np.arange(self.width, dtype=np.float32),
            np.arange(self.height, dtype=np.float32),
        )
        points = np.dstack([xs, ys, np.full_like(xs, 1000.0)])
        params = self.tree["Cameras"]["BySerialNo"][self.stereo_serial]["Parameters"]
        if params["Capture"].get("UseDisparityMapAreaOfInterest"):
            aoi = params["DisparityMap"]["AreaOfInterest"]
            (x0, y0), (x1, y1) = aoi["LeftTop"], aoi["RightBottom"]
            mask = np.ones((self.height, self.width), bool)
            mask[y0:y1, x0:x1] = False
            points[mask] = np.nan
        return points

    def _cmd_ComputePointMap(self, params: dict) -> dict:
        path = self.camera_path(self.stereo_serial) + ("Images", "PointMap")
        self.binary[path] = self._point_map()
        return {}

    def _cmd_RenderPointMap(self, params: dict) -> dict:
        self.binary[("Images", "RenderPointMap")] = self._point_map()
        return {}

    def _observation(self) -> np.ndarray:
        """Pattern pose in the camera frame, millimeters."""
        if self.truth is not None and self.robot_pose is not None:
            X, P = self.truth["camera"], self.truth["pattern"]
            if self.truth["moving"]:
                observed = compose(invert_transform(X), invert_transform(self.robot_pose), P)
            else:
                observed = compose(invert_transform(X), self.robot_pose, P)
            return to_millimeters(observed)
        if self.visible_pattern is None:
            raise DeviceCommandError("PatternNotFound", "No pattern in view")
        return to_millimeters(self.visible_pattern)

    def _cmd_DiscardPatterns(self, params: dict) -> dict:
        self.patterns.clear()
        return {}

    def _cmd_CollectPattern(self, params: dict) -> dict:
        self.patterns.append(self._observation())
        return {}

    def _cmd_EstimatePatternPose(self, params: dict) -> dict:
        if not self.patterns:
            return {"Patterns": []}
        return {"Patterns": [{"PatternPose": pose_to_nx(self.patterns[-1])}]}

    def _cmd_CalibrateHandEye(self, params: dict) -> dict:
        robot = [pose_from_nx(t) for t in params["Transformations"]]
        if len(robot) != len(self.patterns):
            raise DeviceCommandError("InvalidPatternCount", "poses/patterns mismatch")
        moving = params["Setup"] == "Moving"
        grippers = robot if moving else [invert_transform(T) for T in robot]
        R, t = cv2.calibrateHandEye(
            [np.ascontiguousarray(T[:3, :3]) for T in grippers],
            [np.ascontiguousarray(T[:3, 3]).reshape(3, 1) for T in grippers],
            [np.ascontiguousarray(T[:3, :3]) for T in self.patterns],
            [np.ascontiguousarray(T[:3, 3]).reshape(3, 1) for T in self.patterns],
            method=cv2.CALIB_HAND_EYE_TSAI,
        )
        X = make_transform(R, t)
        if moving:
            pattern = compose(robot[0], X, self.patterns[0])
        else:
            pattern = compose(invert_transform(robot[0]), X, self.patterns[0])
        link = pose_to_nx(X)
        link["Target"] = params.get("Target") or ("Hand" if moving else "Workspace")
        self.tree["Cameras"]["BySerialNo"][self.stereo_serial]["Link"] = link
        return {
            "PatternPose": pose_to_nx(pattern),
            "Iterations": 7,
            "ReprojectionError": 0.05,
        }

    def _cmd_CalibrateWorkspace(self, params: dict) -> dict:
        camera = self.tree["Cameras"]["BySerialNo"][self.stereo_serial]
        target = camera["Link"].get("Target", "")
        if "PatternPose" not in params:
            camera["Link"] = _identity_link(target)
            return {}
        pattern = pose_from_nx(params["PatternPose"])
        defined = pose_from_nx(params.get("DefinedPose", pose_to_nx(np.eye(4))))
        link = pose_to_nx(compose(defined, invert_transform(pattern)))
        link["Target"] = params.get("Target") or "Workspace"
        camera["Link"] = link
        return {}

    def _cmd_StoreCalibration(self, params: dict) -> dict:
        camera = self.tree["Cameras"]["BySerialNo"][self.stereo_serial]
        self.eeprom = copy.deepcopy(camera["Link"])
        return {}
