"""
Status report for the `list` command
"""

from typing import Callable, List, Optional

from backend.device_holders import find_device_holders
from backend.driver_binder import DriverBinder
from backend.service_manager import ServiceManager
from models.switch_model import DeviceConfig
from utils.logger import logger


def build_report(device_config: DeviceConfig,
                 binder: Optional[DriverBinder] = None,
                 holder_finder: Optional[Callable] = None,
                 service: Optional[ServiceManager] = None) -> List[str]:
    """
    Describe current driver bindings, device holders and the persistence daemon

    Returns:
        Report lines, also written to the log
    """
    binder = binder or DriverBinder()
    holder_finder = holder_finder or find_device_holders
    service = service or ServiceManager()
    lines = [f"Device {device_config.device_path} at {device_config.bus_prefix}"]

    for index, bus_id in enumerate(binder.list_functions(device_config.bus_prefix)):
        current = binder.current_driver(bus_id) or "(none)"
        host = device_config.drivers[index] if index < len(device_config.drivers) else "?"
        lines.append(f"  {bus_id}: {current} (host driver: {host})")

    holders = holder_finder(device_config.device_path, exclude_names=())
    if holders:
        lines.append(f"Processes using {device_config.device_path}:")
        lines.extend(f"  {holder}" for holder in holders)
    else:
        lines.append(f"No processes using {device_config.device_path}")

    state = "active" if service.is_active() else "inactive"
    lines.append(f"{service.unit}: {state}")

    for line in lines:
        logger.info(line)
    return lines
