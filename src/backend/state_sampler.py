"""
Device State Sampler - read P-state and power draw with nvidia-smi
"""

import re
import subprocess

import config
from backend.errors import SamplingError
from models.switch_model import PowerReading, PState
from utils.logger import logger


# e.g. "11.40 W"
POWER_DRAW_PATTERN = re.compile(r'(\d+)\.\d+\s*W')


def parse_reading(raw: str) -> PowerReading:
    """
    Parse one line of nvidia-smi csv output

    Format: P8, 11.40 W

    Raises:
        SamplingError: If no wattage can be found
    """
    raw_pstate = raw.split(',', 1)[0].strip()

    power_match = POWER_DRAW_PATTERN.search(raw)
    if not power_match:
        raise SamplingError(f"No power draw in {config.VENDOR_QUERY_TOOL} output: {raw.strip()!r}")

    return PowerReading(
        pstate=PState.parse(raw_pstate),
        power_draw_w=int(power_match.group(1)),
        raw_pstate=raw_pstate
    )


class StateSampler:
    """Samples the GPU's current performance state"""

    def __init__(self, tool: str = config.VENDOR_QUERY_TOOL, timeout: float = config.COMMAND_TIMEOUT):
        self.tool = tool
        self.timeout = timeout

    def sample(self, device_query_id: str) -> PowerReading:
        """Query the device once and return a fresh reading"""
        cmd = [
            self.tool,
            '--query-gpu=pstate,power.draw',
            '--format=csv,noheader',
            '-i', device_query_id
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise SamplingError(f"{self.tool} not found") from e
        except subprocess.TimeoutExpired as e:
            raise SamplingError(f"{self.tool} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise SamplingError(
                f"{self.tool} exited with {result.returncode}: {(result.stderr or result.stdout).strip()}"
            )

        reading = parse_reading(result.stdout)
        logger.debug(
            f"{self.tool} raw={result.stdout.strip()!r} "
            f"pstate={reading.raw_pstate} power={reading.power_draw_w}W"
        )
        return reading
