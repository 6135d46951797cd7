"""
Exception hierarchy for GPUSwitch
"""


class GPUSwitchError(Exception):
    """Base class for every fatal switch error"""


class ConfigurationError(GPUSwitchError):
    """Configuration artifact missing, malformed or inconsistent with sysfs"""


class BindError(GPUSwitchError):
    """A PCI function could not be moved to its target driver"""


class SamplingError(GPUSwitchError):
    """The vendor query tool produced no usable reading"""


class ServiceError(GPUSwitchError):
    """systemctl reported a failure"""


class PrivilegeError(GPUSwitchError):
    """Root privileges are required and could not be obtained"""


class DeviceBusyError(GPUSwitchError):
    """Another process still holds the GPU device open"""

    def __init__(self, device_path, holders):
        self.device_path = device_path
        self.holders = list(holders)
        names = ", ".join(f"{h.name} (pid {h.pid})" for h in self.holders)
        super().__init__(f"{device_path} is in use by: {names}")
