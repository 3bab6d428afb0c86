"""Project wide configuration dataclasses and default values."""

from dataclasses import dataclass
from pathlib import Path

# Root dir
BASE_DIR = Path(__file__).resolve().parent.parent

# File name extensions for saved capture data
IMAGE_EXT = ".png"
CLOUD_EXT = ".ply"


@dataclass(frozen=True)
class Paths:
    """
    Filesystem locations used by the CLI for captures, results and logs.
    """

    CONF_DIR: Path = BASE_DIR / "conf"
    CAPTURES_DIR: Path = BASE_DIR / "captures"
    RESULTS_DIR: Path = BASE_DIR / "calib_res"
    LOG_DIR: Path = BASE_DIR / ".logs"


paths = Paths()


@dataclass(frozen=True)
class LoggingCfg:
    """
    Logging configuration for the project.

    - level: Log level ("INFO", "DEBUG", etc.)
    - json: Enable/disable structured JSON logging in the file sink.
    - log_dir: Directory where log files are stored.
    - log_format: Console log output format.
    - log_file_format: File log output format.
    - progress_bar_format: TQDM progress bar format.
    """

    level: str = "INFO"
    json: bool = True
    log_dir: Path = Path(".logs")
    log_format: str = (
        "<green>{time:MM-DD HH:mm:ss}</green>"
        "[<level>{level:.3}</level>]"
        "[<cyan>{extra[module]:.20}</cyan>:<cyan>{line:<3}</cyan>]"
        "<level>{message}</level>"
    )
    log_file_format: str = "{time:YYYY-MM-DD HH:mm:ss}[{level}][{file}:{line}]{message}"
    progress_bar_format: str = (
        "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
    )


logging = LoggingCfg()


@dataclass(frozen=True)
class CameraCfg:
    """
    Stereo camera session parameters.

    An empty ``serial`` opens the first stereo camera found. Timeouts are
    in milliseconds. ``parameters_dump`` receives the merged parameter tree
    every time a parameter file is loaded.
    """

    serial: str = ""
    connect_monocular: bool = True
    capture_timeout_ms: int = 1500
    pattern_timeout_ms: int = 1500
    parameters_file: str = ""
    monocular_parameters_file: str = ""
    parameters_dump: str = "params.json"


camera = CameraCfg()


@dataclass(frozen=True)
class HandEyeCfg:
    """
    Hand-eye calibration options.

    ``moving`` selects the camera-in-hand setup, otherwise the camera is
    fixed and the pattern is mounted on the robot.
    """

    moving: bool = False
    target: str = ""
    robot_poses_file: str = str(paths.CAPTURES_DIR / "robot_poses.json")
    output_file: str = str(paths.RESULTS_DIR / "handeye.json")


handeye = HandEyeCfg()


@dataclass(frozen=True)
class WorkspaceCfg:
    """Workspace (camera to fixed frame) calibration options."""

    frame_id: str = "workspace"
    samples: int = 5
    store: bool = False


workspace = WorkspaceCfg()

__all__ = [
    "Paths",
    "LoggingCfg",
    "CameraCfg",
    "HandEyeCfg",
    "WorkspaceCfg",
    "paths",
    "logging",
    "camera",
    "handeye",
    "workspace",
    "IMAGE_EXT",
    "CLOUD_EXT",
]
