"""
Driver Binder - move PCI functions between kernel drivers via sysfs
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence

import config
from backend.errors import BindError
from utils.logger import logger


class DriverBinder:
    """Rebinds PCI functions through unbind / driver_override / bind"""

    def __init__(self, sysfs_root: Path = config.SYSFS_PCI_ROOT):
        self.sysfs_root = Path(sysfs_root)

    @property
    def devices_dir(self) -> Path:
        return self.sysfs_root / "devices"

    @property
    def drivers_dir(self) -> Path:
        return self.sysfs_root / "drivers"

    def _sysfs_write(self, path: Path, value: str):
        """Write to sysfs"""
        logger.debug(f"sysfs write {path} <- {value!r}")
        try:
            with open(path, 'w') as f:
                f.write(value)
        except OSError as e:
            raise BindError(f"sysfs write to {path} failed: {e}") from e

    def list_functions(self, bus_prefix: str) -> List[str]:
        """
        List the PCI functions present under a bus prefix

        Returns:
            Bus ids such as ["0000:01:00.0", "0000:01:00.1"], by function index
        """
        pattern = re.compile(re.escape(bus_prefix) + r'\.(\d+)$')
        functions = []
        if self.devices_dir.exists():
            for entry in self.devices_dir.iterdir():
                match = pattern.match(entry.name)
                if match:
                    functions.append((int(match.group(1)), entry.name))
        return [name for _, name in sorted(functions)]

    def current_driver(self, bus_id: str) -> Optional[str]:
        """Get current driver for a PCI function"""
        driver_path = self.devices_dir / bus_id / "driver"
        if driver_path.is_symlink() or driver_path.exists():
            return driver_path.resolve().name
        return None

    def bind(self, bus_id: str, target_driver: str) -> bool:
        """
        Bind one PCI function to a driver

        Returns:
            True if the function was rebound, False if it already used the target

        Raises:
            BindError: If the device or driver path is missing or a write fails
        """
        device_dir = self.devices_dir / bus_id
        if not device_dir.exists():
            raise BindError(f"PCI function {bus_id} not found under {self.devices_dir}")

        current = self.current_driver(bus_id)
        if current == target_driver:
            logger.debug(f"{bus_id} already bound to {target_driver}")
            return False

        bind_path = self.drivers_dir / target_driver / "bind"
        if not bind_path.parent.exists():
            raise BindError(f"Driver {target_driver} is not loaded ({bind_path.parent} missing)")

        if current:
            logger.info(f"Unbinding {bus_id} from {current}")
            self._sysfs_write(device_dir / "driver" / "unbind", bus_id)

        self._sysfs_write(device_dir / "driver_override", target_driver)
        self._sysfs_write(bind_path, bus_id)

        logger.info(f"✓ Bound {bus_id} to {target_driver}")
        return True

    def bind_all(self, functions: Sequence[str], drivers: Sequence[str]):
        """Bind functions[i] to drivers[i], aborting on the first failure"""
        for bus_id, driver in zip(functions, drivers):
            self.bind(bus_id, driver)
