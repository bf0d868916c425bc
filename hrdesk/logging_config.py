from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that would otherwise echo every outbound request.
_QUIET = ("httpx", "httpcore", "urllib3")


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level of the `hrdesk` logger tree (`APP_LOG_LEVEL`).

    Under uvicorn the root logger already has handlers and is left alone;
    a bare process (scripts, the client library) gets one stream handler.
    Access tokens and passwords are never passed to a logger.
    """

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)

    logging.getLogger("hrdesk").setLevel(level.upper())
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
