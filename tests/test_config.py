import logging

from finance_core.config import configure_logging


def test_configure_logging_sets_package_level():
    logger = logging.getLogger("finance_core")
    previous = logger.level
    try:
        configure_logging("debug")
        assert logger.level == logging.DEBUG
        configure_logging("not-a-level")
        assert logger.level == logging.INFO
        assert logging.getLogger("finance_core.services").getEffectiveLevel() == logging.INFO
    finally:
        logger.setLevel(previous)
