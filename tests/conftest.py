"""
conftest.py for gpuswitch.

Puts src/ on sys.path and provides a fake sysfs tree, a fake monotonic
clock and a ready-made device configuration.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from backend.driver_binder import DriverBinder  # noqa: E402
from models.switch_model import DeviceConfig  # noqa: E402


class FakeSysfs:
    """Minimal /sys/bus/pci layout: devices/<bdf>/driver -> drivers/<name>"""

    def __init__(self, root: Path):
        self.root = root
        self.devices = root / "devices"
        self.drivers = root / "drivers"
        self.devices.mkdir(parents=True)
        self.drivers.mkdir(parents=True)

    def add_driver(self, name):
        (self.drivers / name).mkdir(exist_ok=True)

    def add_function(self, bus_id, driver=None):
        (self.devices / bus_id).mkdir()
        if driver:
            self.attach(bus_id, driver)

    def attach(self, bus_id, driver):
        """What the kernel does when a bind succeeds"""
        self.add_driver(driver)
        link = self.devices / bus_id / "driver"
        if link.is_symlink():
            link.unlink()
        link.symlink_to(self.drivers / driver)

    def read(self, *parts):
        return self.root.joinpath(*parts).read_text()


class FakeClock:
    """Monotonic clock that only moves when sleep() is called"""

    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def sysfs(tmp_path):
    return FakeSysfs(tmp_path / "sys" / "bus" / "pci")


@pytest.fixture
def gpu_sysfs(sysfs):
    """A two-function GPU on its host drivers, with vfio-pci loaded"""
    sysfs.add_function("0000:01:00.0", "nvidia")
    sysfs.add_function("0000:01:00.1", "snd_hda_intel")
    sysfs.add_function("0000:02:00.0", "nvme")
    sysfs.add_driver("vfio-pci")
    return sysfs


@pytest.fixture
def binder(gpu_sysfs):
    return DriverBinder(gpu_sysfs.root)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def device_config():
    return DeviceConfig(
        device_path=Path("/dev/nvidia1"),
        bus_prefix="0000:01:00",
        drivers=("nvidia", "snd_hda_intel")
    )


@pytest.fixture
def mock_service():
    service = MagicMock()
    service.unit = "nvidia-persistenced"
    return service


@pytest.fixture
def mock_binder():
    binder = MagicMock(spec=DriverBinder)
    binder.list_functions.return_value = ["0000:01:00.0", "0000:01:00.1"]
    return binder
