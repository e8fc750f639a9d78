from __future__ import annotations

import logging

from molrw.config import load_settings


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, installing a root handler on first use."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=load_settings().log_level,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
    return logger
