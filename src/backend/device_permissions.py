"""
Device file permission windows around each nvidia-smi sample
"""

import os
from pathlib import Path

import config
from utils.logger import logger


class DevicePermissions:
    """Toggles the GPU device node between relaxed and restricted modes"""

    def __init__(self, device_path: Path,
                 relaxed_mode: int = config.DEVICE_MODE_RELAXED,
                 restricted_mode: int = config.DEVICE_MODE_RESTRICTED):
        self.device_path = Path(device_path)
        self.relaxed_mode = relaxed_mode
        self.restricted_mode = restricted_mode

    def _chmod(self, mode: int):
        try:
            os.chmod(self.device_path, mode)
        except OSError as e:
            # The node can vanish briefly while the persistence daemon restarts
            logger.warning(f"chmod {mode:o} {self.device_path} failed: {e}")

    def relax(self):
        self._chmod(self.relaxed_mode)

    def restrict(self):
        self._chmod(self.restricted_mode)
