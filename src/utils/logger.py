"""
Logging configuration for GPUSwitch
"""

import logging
import sys
import config


def _console_handlers(logger):
    return [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]


def setup_logger(name="gpuswitch", debug=False):
    """
    Setup application logger with a log file and console output

    The file always receives DEBUG records. The console shows INFO and
    above, or DEBUG as well when debug is set; calling again on an existing
    logger only changes the console level.

    Args:
        name: Logger name
        debug: Show DEBUG records (raw nvidia-smi readings, sysfs writes) on the console

    Returns:
        logging.Logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, config.LOG_LEVEL))
    console_level = logging.DEBUG if debug else logging.INFO

    if logger.handlers:
        for handler in _console_handlers(logger):
            handler.setLevel(console_level)
        return logger

    try:
        config.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.LOG_FILE, encoding='utf-8')
    except OSError as e:
        print(f"Warning: Could not open {config.LOG_FILE}: {e}", file=sys.stderr)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)-7s %(filename)s:%(lineno)d %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()
