"""
Switch orchestrators - hand the GPU to the host driver or to vfio-pci
"""

import time
from typing import Callable, List, Optional

import config
from backend.convergence import is_converged
from backend.device_holders import find_device_holders
from backend.device_permissions import DevicePermissions
from backend.driver_binder import DriverBinder
from backend.errors import ConfigurationError, DeviceBusyError, SamplingError
from backend.notifier import Notifier
from backend.service_manager import ServiceManager
from backend.state_sampler import StateSampler
from models.switch_model import DeviceConfig, PowerReading, RetryBudget, SwitchOutcome
from utils.logger import logger


class _Switcher:
    """Collaborators shared by both switch directions"""

    def __init__(self, device_config: DeviceConfig,
                 binder: Optional[DriverBinder] = None,
                 service: Optional[ServiceManager] = None):
        self.device_config = device_config
        self.binder = binder or DriverBinder()
        self.service = service or ServiceManager(config.PERSISTENCE_DAEMON)

    def _resolve_functions(self) -> List[str]:
        """
        Get the device's PCI functions, checking them against the driver list

        Raises:
            ConfigurationError: If the function count differs from the driver count
        """
        functions = self.binder.list_functions(self.device_config.bus_prefix)
        if len(functions) != len(self.device_config.drivers):
            raise ConfigurationError(
                f"{len(functions)} PCI function(s) found under {self.device_config.bus_prefix} "
                f"but {len(self.device_config.drivers)} driver(s) configured"
            )
        return functions


class HostSwitcher(_Switcher):
    """
    Hands the GPU back to the host driver and waits for it to idle

    After rebinding, the persistence daemon is restarted up to
    budget.attempts times. Each attempt polls nvidia-smi until the
    per-attempt timeout runs out, stopping as soon as the GPU reports
    the target P-state at or under the power ceiling.
    """

    def __init__(self, device_config: DeviceConfig,
                 binder: Optional[DriverBinder] = None,
                 service: Optional[ServiceManager] = None,
                 sampler: Optional[StateSampler] = None,
                 permissions: Optional[DevicePermissions] = None,
                 notifier: Optional[Notifier] = None,
                 budget: Optional[RetryBudget] = None,
                 delay: float = 0,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(device_config, binder, service)
        self.sampler = sampler or StateSampler()
        self.permissions = permissions or DevicePermissions(device_config.device_path)
        self.notifier = notifier or Notifier()
        self.budget = budget or RetryBudget()
        self.delay = delay
        self.sleep = sleep
        self.clock = clock

    def _delay(self):
        if self.delay > 0:
            logger.info(f"Sleeping {self.delay}s")
            self.sleep(self.delay)

    def _sample(self) -> Optional[PowerReading]:
        """Take one reading inside a relaxed permission window"""
        self.permissions.relax()
        try:
            return self.sampler.sample(self.device_config.query_id)
        except SamplingError as e:
            logger.warning(f"Sampling failed: {e}")
            return None
        finally:
            self.permissions.restrict()

    def _restart_daemon(self):
        self.service.stop()
        self.permissions.relax()
        self.service.start()

    def _poll_until_deadline(self) -> Optional[PowerReading]:
        """Poll until convergence or until this attempt's timer runs out"""
        deadline = self.clock() + self.budget.per_attempt_timeout
        while self.clock() < deadline:
            reading = self._sample()
            if reading is not None:
                logger.debug(f"Reading: {reading}")
                if is_converged(reading):
                    return reading
            self.sleep(self.budget.poll_interval)
        return None

    def run(self) -> SwitchOutcome:
        self._delay()

        functions = self._resolve_functions()
        logger.info(f"Switching {self.device_config.bus_prefix} to host drivers...")
        self.binder.bind_all(functions, self.device_config.drivers)

        for attempt in range(1, self.budget.attempts + 1):
            logger.info(f"Restarting {self.service.unit} (attempt {attempt}/{self.budget.attempts})")
            self._restart_daemon()

            reading = self._poll_until_deadline()
            if reading is not None:
                message = f"GPU idle at {reading} after {attempt} attempt(s)"
                logger.info(f"✓ {message}")
                self.notifier.notify(f"{config.APP_NAME}: GPU ready", message)
                return SwitchOutcome.CONVERGED

            logger.info(f"No convergence within {self.budget.per_attempt_timeout}s")

        message = (
            f"GPU did not reach {config.TARGET_PSTATE} at <= {config.TARGET_POWER_CEILING_W} W "
            f"after {self.budget.attempts} attempts"
        )
        logger.warning(message)
        self.notifier.notify(f"{config.APP_NAME}: GPU not idle", message, urgency="critical")

        self._delay()
        return SwitchOutcome.EXHAUSTED


class PassthroughSwitcher(_Switcher):
    """Hands every function of the GPU to vfio-pci"""

    def __init__(self, device_config: DeviceConfig,
                 binder: Optional[DriverBinder] = None,
                 service: Optional[ServiceManager] = None,
                 holder_finder: Optional[Callable] = None,
                 driver: str = config.VFIO_DRIVER):
        super().__init__(device_config, binder, service)
        self.holder_finder = holder_finder or find_device_holders
        self.driver = driver

    def run(self) -> SwitchOutcome:
        device_path = self.device_config.device_path
        holders = self.holder_finder(device_path, exclude_names=(self.service.unit,))
        if holders:
            for holder in holders:
                logger.error(f"  {holder}")
            raise DeviceBusyError(device_path, holders)

        functions = self._resolve_functions()

        logger.info(f"Switching {self.device_config.bus_prefix} to {self.driver}...")
        self.service.stop()
        self.binder.bind_all(functions, [self.driver] * len(functions))
        self.service.start()

        logger.info(f"✓ {self.device_config.bus_prefix} handed to {self.driver}")
        return SwitchOutcome.BOUND
