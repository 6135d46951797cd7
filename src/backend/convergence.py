"""
Convergence Policy - has the GPU settled into low-power idle?
"""

import config
from models.switch_model import PowerReading, PState


def is_converged(reading: PowerReading,
                 target_pstate: PState = PState.parse(config.TARGET_PSTATE),
                 power_ceiling: int = config.TARGET_POWER_CEILING_W) -> bool:
    return reading.pstate is target_pstate and reading.power_draw_w <= power_ceiling
