"""Process entry point: ``python -m logmonitor`` or the ``logmonitor`` script.

Startup order: settings, logging, storage (pinged), token service, app,
listener. Any failure before the listener is up is fatal and exits with
status 1. After a SIGINT/SIGTERM the listener drains for up to
SHUTDOWN_TIMEOUT seconds, then storage and metrics are released.
"""

import asyncio
import logging
import sys

from logmonitor.adapters.frameworks.fastapi import create_app
from logmonitor.adapters.logging import configure_logging
from logmonitor.adapters.storage.sqlite_logs import SQLiteLogRecordStorage
from logmonitor.config import Settings
from logmonitor.core.credentials import StaticCredentialVerifier
from logmonitor.core.errors import LogMonitorError
from logmonitor.core.metrics import MetricsRegistry
from logmonitor.core.tokens import TokenService
from logmonitor.runtime.lifecycle import ServerLifecycle

logger = logging.getLogger("logmonitor")


async def run(settings: Settings) -> bool:
    """Serve until a termination signal arrives.

    Returns:
        True if in-flight requests drained within the shutdown window.
    """
    storage = SQLiteLogRecordStorage.open(
        settings.database_path,
        max_open=settings.max_open_conns,
        max_lifetime=settings.conn_max_lifetime,
    )
    metrics = MetricsRegistry()
    try:
        await storage.ping()
        logger.info("Connected to database %s", settings.database_path)

        app = create_app(
            storage=storage,
            token_service=TokenService(settings.jwt_secret),
            credentials=StaticCredentialVerifier(settings.admin),
            metrics=metrics,
        )
        lifecycle = ServerLifecycle(app)
        await lifecycle.start(settings.host, settings.port)
        await lifecycle.wait_for_shutdown_signal()
        return await lifecycle.shutdown(timeout=settings.shutdown_timeout)
    finally:
        await storage.close()
        metrics.close()


def main() -> int:
    try:
        settings = Settings.from_env()
    except LogMonitorError as exc:
        configure_logging()
        logger.critical("%s", exc.message)
        return 1

    try:
        configure_logging(settings.log_level)
    except ValueError as exc:
        configure_logging()
        logger.critical("%s", exc)
        return 1
    logger.info("Starting with %r", settings)

    try:
        asyncio.run(run(settings))
    except LogMonitorError as exc:
        logger.critical("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
