"""
Find processes holding the GPU device file open
"""

import subprocess
from pathlib import Path
from typing import Iterable, List

import psutil

import config
from backend.errors import ConfigurationError, GPUSwitchError
from models.switch_model import DeviceHolder
from utils.logger import logger


def _holder_pids(device_path: Path) -> List[int]:
    """Run lsof and return the pids with the device open"""
    if not Path(device_path).exists():
        raise ConfigurationError(f"Device {device_path} does not exist; check the configured device path")

    try:
        result = subprocess.run(
            ['lsof', '-t', '--', str(device_path)],
            capture_output=True,
            text=True,
            timeout=config.COMMAND_TIMEOUT
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise GPUSwitchError(f"Could not list holders of {device_path}: {e}") from e

    # lsof exits 1 both when nothing matches and when it cannot stat the path
    stat_failed = result.returncode == 1 and "status error" in result.stderr
    if result.returncode not in (0, 1) or stat_failed:
        raise GPUSwitchError(f"lsof failed on {device_path}: {result.stderr.strip()}")

    return sorted({int(pid) for pid in result.stdout.split() if pid.isdigit()})


def find_device_holders(device_path: Path,
                        exclude_names: Iterable[str] = (config.PERSISTENCE_DAEMON,)) -> List[DeviceHolder]:
    """
    List processes holding a device open

    Args:
        device_path: Device node, e.g. /dev/nvidia1
        exclude_names: Process names to ignore (the persistence daemon)

    Returns:
        DeviceHolder entries, sorted by pid
    """
    excluded = set(exclude_names)
    holders = []

    for pid in _holder_pids(device_path):
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                name = proc.name()
                if name in excluded:
                    continue
                holders.append(DeviceHolder(
                    pid=pid,
                    name=name,
                    user=proc.username(),
                    cmdline=' '.join(proc.cmdline())
                ))
        except psutil.NoSuchProcess:
            logger.debug(f"Process {pid} exited while listing holders")
        except psutil.AccessDenied:
            holders.append(DeviceHolder(pid=pid, name="?"))

    return holders
