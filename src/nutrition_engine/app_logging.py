"""Logging configuration helpers."""

import logging

ROOT_LOGGER = "nutrition_engine"


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a single stream handler to the engine logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
