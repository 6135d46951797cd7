"""
systemd service control
"""

import subprocess

import config
from backend.errors import ServiceError
from utils.logger import logger


class ServiceManager:
    """Thin wrapper around systemctl for one unit"""

    def __init__(self, unit: str = config.PERSISTENCE_DAEMON):
        self.unit = unit

    @staticmethod
    def _systemctl(*args) -> subprocess.CompletedProcess:
        cmd = ['systemctl', *args]
        try:
            return subprocess.run(cmd, capture_output=True, text=True, timeout=config.COMMAND_TIMEOUT * 3)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ServiceError(f"{' '.join(cmd)} failed: {e}") from e

    def _run(self, action: str):
        logger.debug(f"systemctl {action} {self.unit}")
        result = self._systemctl(action, self.unit)
        if result.returncode != 0:
            raise ServiceError(
                f"systemctl {action} {self.unit} exited with {result.returncode}: {result.stderr.strip()}"
            )

    def stop(self):
        self._run('stop')

    def start(self):
        self._run('start')

    def enable(self):
        self._run('enable')
        logger.info(f"✓ Enabled {self.unit}")

    def is_active(self) -> bool:
        """Check if the unit is running"""
        return self._systemctl('is-active', self.unit).returncode == 0

    @classmethod
    def daemon_reload(cls):
        result = cls._systemctl('daemon-reload')
        if result.returncode != 0:
            raise ServiceError(f"systemctl daemon-reload failed: {result.stderr.strip()}")
