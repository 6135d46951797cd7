"""
One-time setup: record host drivers and register the boot unit
"""

import shutil
import sys
from pathlib import Path
from typing import Optional

import config
from backend.driver_binder import DriverBinder
from backend.errors import ConfigurationError
from backend.service_manager import ServiceManager
from models.switch_model import BUS_PREFIX_PATTERN, DeviceConfig, save_config
from utils.logger import logger


UNIT_TEMPLATE = """[Unit]
Description={app_name} - hand the secondary GPU to the host driver
After={daemon}.service
Wants={daemon}.service

[Service]
Type=oneshot
ExecStart={exec_start}

[Install]
WantedBy=multi-user.target
"""


def default_exec_start(config_path: Path) -> str:
    """Command line the boot unit runs"""
    executable = shutil.which("gpuswitch")
    prefix = executable if executable else f"{sys.executable} {config.BASE_DIR / 'main.py'}"
    return f"{prefix} --config {config_path} nvidia"


class Installer:
    """Writes the configuration artifact and the systemd unit"""

    def __init__(self, binder: Optional[DriverBinder] = None,
                 config_path: Path = config.CONFIG_FILE,
                 unit_dir: Path = config.SYSTEMD_UNIT_DIR,
                 service_factory=ServiceManager):
        self.binder = binder or DriverBinder()
        self.config_path = Path(config_path)
        self.unit_dir = Path(unit_dir)
        self.service_factory = service_factory

    def detect(self, bus_prefix: str, device_path: Path) -> DeviceConfig:
        """
        Build a configuration from the drivers currently bound

        Raises:
            ConfigurationError: If the prefix has no functions, or a function is
                unbound or already on vfio-pci
        """
        bus_prefix = bus_prefix.lower()
        if not BUS_PREFIX_PATTERN.match(bus_prefix):
            raise ConfigurationError(f"Invalid PCI bus prefix: {bus_prefix!r}")

        functions = self.binder.list_functions(bus_prefix)
        if not functions:
            raise ConfigurationError(f"No PCI functions found under {bus_prefix}")

        drivers = []
        for bus_id in functions:
            driver = self.binder.current_driver(bus_id)
            if driver is None or driver == config.VFIO_DRIVER:
                raise ConfigurationError(
                    f"{bus_id} is bound to {driver or 'no driver'}; "
                    f"run install while the GPU is on its host drivers"
                )
            drivers.append(driver)
            logger.info(f"{bus_id}: {driver}")

        return DeviceConfig(device_path=Path(device_path), bus_prefix=bus_prefix, drivers=tuple(drivers))

    def write_unit(self, exec_start: str) -> Path:
        unit_path = self.unit_dir / config.SWITCH_UNIT_NAME
        unit_path.parent.mkdir(parents=True, exist_ok=True)
        unit_path.write_text(UNIT_TEMPLATE.format(
            app_name=config.APP_NAME,
            daemon=config.PERSISTENCE_DAEMON,
            exec_start=exec_start
        ))
        logger.info(f"✓ Wrote {unit_path}")
        return unit_path

    def install(self, bus_prefix: str, device_path: Path, exec_start: Optional[str] = None) -> DeviceConfig:
        device_config = self.detect(bus_prefix, device_path)

        save_config(device_config, self.config_path)
        logger.info(f"✓ Wrote {self.config_path}")

        self.write_unit(exec_start or default_exec_start(self.config_path))

        self.service_factory.daemon_reload()
        self.service_factory(config.PERSISTENCE_DAEMON).enable()
        self.service_factory(config.SWITCH_UNIT_NAME).enable()

        logger.info(f"✓ {config.APP_NAME} installed for {device_config.bus_prefix}")
        return device_config
