"""Process-wide logging setup."""

import logging

from dragon_api.config.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    # httpx logs every request at INFO, which is noisy for JWKS and token calls
    logging.getLogger("httpx").setLevel(logging.WARNING)
