"""
Data model for a GPU driver switch
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

import config
from backend.errors import ConfigurationError


# e.g. "0000:01:00"
BUS_PREFIX_PATTERN = re.compile(r'^[0-9a-f]{4}:[0-9a-f]{2}:[0-9a-f]{2}$')


class PState(Enum):
    """NVIDIA performance states, P0 (max) to P15 (min)"""
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"
    P5 = "P5"
    P6 = "P6"
    P7 = "P7"
    P8 = "P8"
    P9 = "P9"
    P10 = "P10"
    P11 = "P11"
    P12 = "P12"
    P13 = "P13"
    P14 = "P14"
    P15 = "P15"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, label: str) -> "PState":
        """Map a vendor label onto a known state, or UNRECOGNIZED"""
        label = label.strip().upper()
        for state in cls:
            if state is not cls.UNRECOGNIZED and state.value == label:
                return state
        return cls.UNRECOGNIZED


@dataclass(frozen=True)
class PowerReading:
    """One sample of the device's performance state and power draw"""
    pstate: PState
    power_draw_w: int
    raw_pstate: str = ""

    def __str__(self) -> str:
        label = self.pstate.value if self.pstate is not PState.UNRECOGNIZED else self.raw_pstate
        return f"{label}, {self.power_draw_w} W"


@dataclass(frozen=True)
class RetryBudget:
    """Bounds of the host-switch convergence loop"""
    attempts: int = config.RETRY_ATTEMPTS
    per_attempt_timeout: float = config.ATTEMPT_TIMEOUT
    poll_interval: float = config.POLL_INTERVAL


class SwitchOutcome(Enum):
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    BOUND = "bound"


@dataclass
class DeviceHolder:
    """A process holding the GPU device file open"""
    pid: int
    name: str
    user: Optional[str] = None
    cmdline: str = ""

    def __str__(self) -> str:
        owner = f" [{self.user}]" if self.user else ""
        command = f": {self.cmdline}" if self.cmdline else ""
        return f"{self.pid} {self.name}{owner}{command}"


@dataclass(frozen=True)
class DeviceConfig:
    """Device identity plus the host driver of each PCI function"""
    device_path: Path
    bus_prefix: str
    drivers: Tuple[str, ...] = field(default_factory=tuple)

    def function_address(self, index: int) -> str:
        """Get the bus id of one function, e.g. 0000:01:00.1"""
        return f"{self.bus_prefix}.{index}"

    @property
    def query_id(self) -> str:
        """Bus id used to address the GPU with the vendor query tool"""
        return self.function_address(0)


def load_config(path: Path = config.CONFIG_FILE) -> DeviceConfig:
    """
    Read the three-line configuration artifact

    Line 1: device path (e.g. /dev/nvidia1)
    Line 2: PCI bus prefix (e.g. 0000:01:00)
    Line 3: comma-separated host drivers, one per function index

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    try:
        text = Path(path).read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e

    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if len(lines) < 3:
        raise ConfigurationError(
            f"Configuration {path} must have 3 lines (device, bus prefix, drivers), got {len(lines)}"
        )

    device_path, bus_prefix, driver_line = lines[:3]
    bus_prefix = bus_prefix.lower()
    if not BUS_PREFIX_PATTERN.match(bus_prefix):
        raise ConfigurationError(f"Invalid PCI bus prefix in {path}: {bus_prefix!r}")

    drivers = tuple(d.strip() for d in driver_line.split(','))
    if not all(drivers):
        raise ConfigurationError(f"Invalid driver list in {path}: {driver_line!r}")

    return DeviceConfig(
        device_path=Path(device_path),
        bus_prefix=bus_prefix,
        drivers=drivers
    )


def save_config(device_config: DeviceConfig, path: Path = config.CONFIG_FILE):
    """Write the configuration artifact, creating its directory"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f"{device_config.device_path}\n"
        f"{device_config.bus_prefix}\n"
        f"{','.join(device_config.drivers)}\n",
        encoding='utf-8'
    )
