"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from depthcam.camera import EnsensoCamera  # noqa: E402
from depthcam.registry import DeviceSubsystem  # noqa: E402
from fake_device import FakeEnsenso  # noqa: E402


@pytest.fixture(autouse=True)
def reset_subsystem():
    """Keep the process-wide SDK refcount isolated between tests."""
    yield
    DeviceSubsystem._users = 0


@pytest.fixture
def fake():
    """Stereo camera with a linked monocular camera."""
    return FakeEnsenso()


@pytest.fixture
def fake_stereo_only():
    return FakeEnsenso(mono_serial=None)


@pytest.fixture
def camera(fake, tmp_path):
    from utils.settings import CameraCfg

    cam = EnsensoCamera(fake, cfg=CameraCfg(parameters_dump=str(tmp_path / "params.json")))
    yield cam
    cam.close()


@pytest.fixture
def stereo_camera(fake_stereo_only):
    cam = EnsensoCamera(fake_stereo_only)
    yield cam
    cam.close()
