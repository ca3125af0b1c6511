"""
Logging Utilities

Centralized logging configuration for the planner backend.

Usage:
    from utils.logging_utils import get_logger

    logger = get_logger(__name__)
    logger.info("Plan %s saved", plan.id)

All module loggers live under the ``dietcoach`` namespace so a single
dictConfig entry controls their level and handlers.
"""

import copy
import logging
import logging.config

from config import LOGGING_CONFIG

ROOT_LOGGER_NAME = 'dietcoach'

_configured = False


def setup_logging(level=None, force=False):
    """
    Apply LOGGING_CONFIG once.

    Idempotent - later calls are no-ops unless ``force`` is set. ``level``
    overrides the level of the ``dietcoach`` logger.
    """
    global _configured
    if _configured and not force:
        return

    logging_config = copy.deepcopy(LOGGING_CONFIG)
    if level:
        logging_config['loggers'][ROOT_LOGGER_NAME]['level'] = str(level).upper()
    logging.config.dictConfig(logging_config)
    _configured = True


def get_logger(name):
    """
    Get logger for module.

    Args:
        name: Module name (use __name__)

    Returns:
        Logger nested under the ``dietcoach`` namespace
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
