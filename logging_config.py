"""
Logging Configuration
Sets up console (and optional file) logging for the simulation scripts.
"""
import logging
import sys
from typing import List, Optional

_installed: List[logging.Handler] = []


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the root logger used by every simulation module.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    # Replace only what an earlier call installed; leave host handlers alone
    for handler in _installed:
        logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    _installed.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        _installed.append(file_handler)

    logging.getLogger("matplotlib").setLevel(max(level, logging.WARNING))
    logger.debug("Logging initialized.")
