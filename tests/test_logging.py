import logging

from src.core.logging import logger, setup_logging


def test_level_follows_settings(settings):
    assert logger.name == "vidtube"
    assert logger.level == logging.getLevelName(settings.LOG_LEVEL.upper())


def test_explicit_level_overrides_settings(settings):
    try:
        assert setup_logging("debug").level == logging.DEBUG
    finally:
        setup_logging(settings.LOG_LEVEL)
