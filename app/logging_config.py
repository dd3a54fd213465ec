from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set log levels for the ``app`` package at startup.

    Uvicorn installs its own handlers; when the app runs without it (tests, scripts)
    a basic stderr handler is attached so directory failures are still visible.
    ``APP_LOG_LEVEL=DEBUG`` shows per-role aggregation details.
    """

    normalized = level.upper()
    app_logger = logging.getLogger("app")
    app_logger.setLevel(normalized)
    app_logger.propagate = True

    if not logging.getLogger().handlers:
        logging.basicConfig(format=_FORMAT)

    # urllib3 logs every connection at DEBUG; keep it out of role-check traces.
    logging.getLogger("urllib3").setLevel(max(logging.getLevelName(normalized), logging.INFO))
