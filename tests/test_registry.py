import pytest

from depthcam.camera import EnsensoCamera
from depthcam.registry import DeviceHandle, DeviceRegistry, DeviceSubsystem
from fake_device import MONO_SERIAL, STEREO_SERIAL, FakeEnsenso
from utils.error_tracker import DeviceCommandError, DeviceNotFound


def test_open_any_stereo_camera(fake):
    handle = DeviceRegistry(fake).open()
    assert handle == DeviceHandle(STEREO_SERIAL)
    assert handle.path == ("Cameras", "BySerialNo", STEREO_SERIAL)
    assert fake.params_of("Open") == [{"Cameras": [STEREO_SERIAL]}]


def test_open_by_serial(fake):
    handle = DeviceRegistry(fake).open(MONO_SERIAL)
    assert handle.serial == MONO_SERIAL


def test_open_unknown_serial_fails(fake):
    with pytest.raises(DeviceNotFound):
        DeviceRegistry(fake).open("999")
    assert fake.commands() == []


def test_open_without_stereo_camera_fails(fake):
    del fake.tree["Cameras"]["BySerialNo"][STEREO_SERIAL]
    with pytest.raises(DeviceNotFound):
        DeviceRegistry(fake).open()


def test_open_linked(fake, fake_stereo_only):
    registry = DeviceRegistry(fake)
    linked = registry.open_linked(registry.open())
    assert linked == DeviceHandle(MONO_SERIAL)

    registry = DeviceRegistry(fake_stereo_only)
    assert registry.open_linked(registry.open()) is None


def test_subsystem_initialized_once_for_nested_sessions(fake):
    first = EnsensoCamera(fake)
    second = EnsensoCamera(fake, connect_monocular=False)
    assert fake.initialized == 1
    first.close()
    assert fake.finalized == 0
    second.close()
    assert fake.finalized == 1
    assert DeviceSubsystem.users() == 0


def test_close_is_idempotent(fake):
    cam = EnsensoCamera(fake)
    cam.close()
    cam.close()
    assert fake.commands().count("Close") == 2  # stereo + monocular once each
    assert fake.finalized == 1


def test_session_closes_linked_before_stereo(fake):
    with EnsensoCamera(fake):
        pass
    closes = fake.params_of("Close")
    assert closes == [{"Cameras": [MONO_SERIAL]}, {"Cameras": [STEREO_SERIAL]}]


def test_failed_construction_releases_everything(fake):
    calls = {"n": 0}
    original = fake._cmd_Open

    def open_once(params):
        calls["n"] += 1
        if calls["n"] == 2:
            raise DeviceCommandError("CameraBusy", "monocular in use")
        return original(params)

    fake._cmd_Open = open_once
    with pytest.raises(DeviceCommandError):
        EnsensoCamera(fake)
    assert fake.params_of("Close") == [{"Cameras": [STEREO_SERIAL]}]
    assert fake.initialized == 1
    assert fake.finalized == 1
    assert DeviceSubsystem.users() == 0


def test_missing_camera_prevents_session():
    fake = FakeEnsenso(stereo_serial="1", mono_serial=None)
    with pytest.raises(DeviceNotFound):
        EnsensoCamera(fake, serial="2")
    assert fake.finalized == 1
    assert "Close" not in fake.commands()
