"""
Logging utilities for the Smart Cart backend.

Every module asks for its own named logger; all of them share one stream
handler format so the output reads as `event | key=value` lines.
"""
import logging
import sys

from settings import SmartCartConfigs

configs = SmartCartConfigs()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_app_logger(name: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name or "smart_cart")
    if not logger.handlers:
        logger.addHandler(_build_handler())
        logger.setLevel(getattr(logging, configs.LOG_LEVEL, logging.INFO))
        logger.propagate = False
    return logger


def initialize_logging():
    root = get_app_logger("smart_cart")
    root.info(f"logging_initialized | level={configs.LOG_LEVEL}")
