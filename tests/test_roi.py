import numpy as np

from depthcam.registry import DeviceHandle
from depthcam.roi import RegionOfInterest, set_region_of_interest
from fake_device import STEREO_SERIAL

PARAMS = ("Cameras", "BySerialNo", STEREO_SERIAL, "Parameters")
AOI = PARAMS + ("DisparityMap", "AreaOfInterest")
FLAG = PARAMS + ("Capture", "UseDisparityMapAreaOfInterest")


def test_rectangle_enables_area_of_interest(fake):
    handle = DeviceHandle(STEREO_SERIAL)
    set_region_of_interest(fake, handle, RegionOfInterest((0, 0), (100, 80)))
    assert fake.get(FLAG) is True
    assert fake.get(AOI) == {"LeftTop": [0, 0], "RightBottom": [100, 80]}


def test_unrestricted_erases_geometry(fake):
    handle = DeviceHandle(STEREO_SERIAL)
    for roi in [
        RegionOfInterest((3, 4), (20, 30)),
        RegionOfInterest.from_rect(10, 10, 5, 5),
        RegionOfInterest((0, 0), (64, 48)),
    ]:
        set_region_of_interest(fake, handle, roi)
        set_region_of_interest(fake, handle, None)
        assert fake.get(FLAG) is False
        assert not fake.exists(AOI)


def test_zero_area_rectangle_is_unrestricted(fake):
    handle = DeviceHandle(STEREO_SERIAL)
    set_region_of_interest(fake, handle, RegionOfInterest((5, 5), (20, 20)))
    set_region_of_interest(fake, handle, RegionOfInterest.from_rect(5, 5, 0, 10))
    assert not fake.exists(AOI)


def test_setting_same_roi_twice_is_idempotent(fake):
    handle = DeviceHandle(STEREO_SERIAL)
    roi = RegionOfInterest.from_rect(2, 3, 10, 20)
    set_region_of_interest(fake, handle, roi)
    first = fake.get(PARAMS)
    set_region_of_interest(fake, handle, roi)
    assert fake.get(PARAMS) == first

    set_region_of_interest(fake, handle, None)
    cleared = fake.get(PARAMS)
    set_region_of_interest(fake, handle, None)
    assert fake.get(PARAMS) == cleared


def test_roi_restricts_point_map(camera, fake):
    camera.retrieve()
    cloud = camera.load_point_cloud(RegionOfInterest((0, 0), (10, 8)), capture=False)
    assert cloud.size == (fake.width, fake.height)
    assert len(cloud.valid_points()) == 10 * 8
    assert np.all(np.isnan(cloud.points[20, 30]))
