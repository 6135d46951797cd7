"""
Global configuration and constants for GPUSwitch
"""

from pathlib import Path

# Application metadata
APP_NAME = "GPUSwitch"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Hand a secondary GPU between the host driver and vfio-pci"

# Paths
BASE_DIR = Path(__file__).resolve().parent
SYSFS_PCI_ROOT = Path("/sys/bus/pci")
CONFIG_FILE = Path("/etc/gpuswitch/gpuswitch.conf")

# Drivers and services
VFIO_DRIVER = "vfio-pci"
PERSISTENCE_DAEMON = "nvidia-persistenced"
VENDOR_QUERY_TOOL = "nvidia-smi"

# systemd
SYSTEMD_UNIT_DIR = Path("/etc/systemd/system")
SWITCH_UNIT_NAME = "gpuswitch.service"

# Device file permissions around each sample
DEVICE_MODE_RELAXED = 0o666
DEVICE_MODE_RESTRICTED = 0o600

# Convergence target
TARGET_PSTATE = "P8"
TARGET_POWER_CEILING_W = 25  # watts

# Retry budget
RETRY_ATTEMPTS = 4
ATTEMPT_TIMEOUT = 30  # seconds
POLL_INTERVAL = 1  # seconds

# Subprocess timeouts
COMMAND_TIMEOUT = 10  # seconds

# Logging
LOG_LEVEL = "DEBUG"  # DEBUG, INFO, WARNING, ERROR
LOG_FILE = Path.home() / ".local" / "share" / "gpuswitch" / "gpuswitch.log"
