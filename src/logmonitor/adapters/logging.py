"""Python logging setup for the service process."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# uvicorn loggers that should share the service's handler and level
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(level: str | int = "INFO", stream=None) -> logging.Handler:
    """Install a single stream handler on the root logger.

    Calling it again replaces the handler it installed previously instead of
    stacking another one.

    Args:
        level: Level name (e.g. "DEBUG") or numeric level.
        stream: Output stream (default: stderr).

    Returns:
        The installed handler.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_logmonitor", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._logmonitor = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
    return handler
