"""
Desktop notifications for the invoking user
"""

import os
import pwd
import subprocess

import config
from utils.logger import logger


class Notifier:
    """Sends notify-send popups, as the sudo caller when running as root"""

    def __init__(self, app_name: str = config.APP_NAME):
        self.app_name = app_name

    def _command(self, summary: str, body: str, urgency: str) -> list:
        cmd = ['notify-send', '-a', self.app_name, '-u', urgency, summary, body]

        sudo_user = os.environ.get("SUDO_USER")
        if os.geteuid() == 0 and sudo_user:
            uid = pwd.getpwnam(sudo_user).pw_uid
            cmd = [
                'sudo', '-u', sudo_user, 'env',
                f'DBUS_SESSION_BUS_ADDRESS=unix:path=/run/user/{uid}/bus',
                *cmd
            ]
        return cmd

    def notify(self, summary: str, body: str = "", urgency: str = "normal") -> bool:
        """
        Show a desktop notification

        Returns:
            True if notify-send succeeded; failures are only logged
        """
        try:
            cmd = self._command(summary, body, urgency)
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=config.COMMAND_TIMEOUT)
        except (OSError, KeyError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Notification failed: {e}")
            return False

        if result.returncode != 0:
            logger.debug(f"notify-send failed: {result.stderr.strip()}")
            return False
        return True
