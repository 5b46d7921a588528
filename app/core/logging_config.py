import logging
from typing import Optional

from app.core.config import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Install a single stream handler on the root logger (idempotent)."""
    settings = settings or get_settings()
    logger = logging.getLogger()
    if not logger.handlers:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(settings.log_level.upper())
    return logger
