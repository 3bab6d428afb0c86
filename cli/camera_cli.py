# cli/camera_cli.py
"""Command line interface for capture, hand-eye and workspace calibration."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np

from depthcam.camera import EnsensoCamera
from depthcam.roi import RegionOfInterest
from utils.cli import Command, CommandDispatcher
from utils.config import DEFAULT_CONFIG_PATH, Config
from utils.error_tracker import ErrorTracker
from utils.io import JSONPoseLoader, save_json, write_image
from utils.logger import Logger
from utils.settings import (
    CLOUD_EXT,
    IMAGE_EXT,
    CameraCfg,
    HandEyeCfg,
    WorkspaceCfg,
    paths,
)

logger = Logger.get_logger("cli.camera")


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="YAML config")
    parser.add_argument("--serial", default=None, help="Stereo camera serial")
    parser.add_argument(
        "--no-monocular", action="store_true", help="Do not open a linked camera"
    )


def _open_camera(args: argparse.Namespace) -> EnsensoCamera:
    # Requires the ensenso_nxlib extra.
    from depthcam.nxlib_executor import NxLibExecutor

    Config.load(args.config)
    cfg = Config.section("camera", CameraCfg)
    cam = EnsensoCamera(
        NxLibExecutor(),
        serial=args.serial,
        connect_monocular=False if args.no_monocular else None,
        cfg=cfg,
    )
    ErrorTracker.register_cleanup(cam.close)
    if cfg.parameters_file:
        cam.load_parameters(cfg.parameters_file)
    if cfg.monocular_parameters_file and cam.has_monocular:
        cam.load_monocular_parameters(cfg.monocular_parameters_file)
    return cam


def _add_capture_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--roi",
        type=int,
        nargs=4,
        metavar=("X", "Y", "W", "H"),
        help="Disparity region of interest",
    )
    parser.add_argument("--output_dir", default=str(paths.CAPTURES_DIR))
    parser.add_argument(
        "--registered",
        action="store_true",
        help="Render the cloud into the monocular camera",
    )


def _run_capture(args: argparse.Namespace) -> None:
    """Capture once and save the intensity image and point cloud."""
    roi = RegionOfInterest.from_rect(*args.roi) if args.roi else None
    out_dir = Path(args.output_dir)
    with _open_camera(args) as cam:
        if not cam.retrieve():
            logger.error("Capture did not deliver images from every camera")
            return
        image = cam.load_intensity(capture=False)
        if args.registered:
            cloud = cam.load_registered_point_cloud(roi, capture=False)
        else:
            cloud = cam.load_point_cloud(roi, capture=False)
    write_image(out_dir / f"intensity{IMAGE_EXT}", image)
    cloud.save_ply(out_dir / f"cloud{CLOUD_EXT}")
    logger.info(
        f"Saved {image.shape[1]}x{image.shape[0]} image and "
        f"{len(cloud.valid_points())} points to {out_dir}"
    )


def _add_detect_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--samples", type=int, default=5)
    parser.add_argument(
        "--workspace", action="store_true", help="Express pose in workspace frame"
    )


def _run_detect(args: argparse.Namespace) -> None:
    with _open_camera(args) as cam:
        pose = cam.detect_calibration_pattern(args.samples, args.workspace)
    logger.info(f"Pattern pose:\n{np.array2string(pose, precision=5)}")


def _add_handeye_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--poses", default=None, help="Robot poses JSON")
    parser.add_argument("--moving", action="store_true", help="Camera in hand")
    parser.add_argument("--target", default=None, help="Target frame name")
    parser.add_argument("--output", default=None, help="Result JSON file")


def _run_handeye(args: argparse.Namespace) -> None:
    """Record one pattern per robot pose, then solve and save the result."""
    Config.load(args.config)
    cfg = Config.section("handeye", HandEyeCfg)
    poses = JSONPoseLoader.load_poses(args.poses or cfg.robot_poses_file)
    moving = args.moving or cfg.moving
    with _open_camera(args) as cam:
        cam.discard_calibration_patterns()
        for idx, _ in enumerate(Logger.progress(poses, desc="Poses"), start=1):
            input(f"Move the robot to pose {idx}/{len(poses)} and press Enter")
            cam.record_calibration_pattern()
        result = cam.compute_calibration(
            poses, moving, target=args.target or cfg.target or None
        )
    output = args.output or cfg.output_file
    save_json(output, result.to_dict())
    logger.info(f"Hand-eye result saved to {output}")


def _add_workspace_set_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--samples", type=int, default=None)
    parser.add_argument("--frame", default=None, help="Workspace frame name")
    parser.add_argument("--store", action="store_true", help="Write to EEPROM")


def _run_workspace_set(args: argparse.Namespace) -> None:
    """Use the currently visible pattern as the workspace origin."""
    Config.load(args.config)
    cfg = Config.section("workspace", WorkspaceCfg)
    with _open_camera(args) as cam:
        pattern = cam.detect_calibration_pattern(args.samples or cfg.samples)
        cam.set_workspace_calibration(
            pattern, args.frame or cfg.frame_id, store=args.store or cfg.store
        )


def _add_store_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--store", action="store_true", help="Write to EEPROM")


def _run_workspace_clear(args: argparse.Namespace) -> None:
    with _open_camera(args) as cam:
        cam.clear_workspace_calibration(store=args.store)


def _run_workspace_show(args: argparse.Namespace) -> None:
    with _open_camera(args) as cam:
        calibration = cam.get_workspace_calibration()
    if calibration is None:
        logger.info("No workspace calibration")
        return
    logger.info(
        f"Workspace '{calibration.frame_name}':\n"
        f"{np.array2string(calibration.transform, precision=5)}"
    )


def create_cli() -> CommandDispatcher:
    """Build the dispatcher with all camera commands."""
    return CommandDispatcher(
        "Ensenso capture and calibration",
        [
            Command("capture", _run_capture, _add_capture_args, "Save image and cloud"),
            Command("detect", _run_detect, _add_detect_args, "Detect pattern pose"),
            Command("handeye", _run_handeye, _add_handeye_args, "Hand-eye calibration"),
            Command(
                "workspace-set",
                _run_workspace_set,
                _add_workspace_set_args,
                "Calibrate workspace on the visible pattern",
            ),
            Command(
                "workspace-clear",
                _run_workspace_clear,
                _add_store_arg,
                "Clear workspace calibration",
            ),
            Command(
                "workspace-show", _run_workspace_show, None, "Print workspace calibration"
            ),
        ],
        add_common_arguments=_add_common_args,
    )


def main() -> None:
    """Entry point for the ``ensenso-cli`` script."""
    sys.exit(create_cli().run(logger=logger))


if __name__ == "__main__":
    main()
