"""Process-wide logging setup for the workforce backend."""

import logging

from backend.app.core.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    settings = get_settings()
    resolved = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
    # SQL echo stays off unless explicitly asked for
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
