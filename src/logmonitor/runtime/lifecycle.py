"""Listener lifecycle: start, wait for a termination signal, drain, stop.

The lifecycle is one-shot per process:

    STOPPED -> LISTENING -> DRAINING -> STOPPED

Nothing is re-enterable. uvicorn's own signal handling is disabled so the
lifecycle alone decides when draining begins.
"""

import asyncio
import contextlib
import logging
import signal
import socket
from collections.abc import Iterator
from enum import Enum
from typing import Any

import uvicorn

from logmonitor.core.errors import LifecycleError

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 5.0
_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(Enum):
    STOPPED = "stopped"
    LISTENING = "listening"
    DRAINING = "draining"


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to ServerLifecycle."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return None


class ServerLifecycle:
    """Owns the listening socket and the uvicorn server serving an ASGI app.

    Args:
        app: The ASGI application to serve.
        startup_timeout: Seconds to wait for uvicorn to report it started.
        **config: Extra keyword arguments for ``uvicorn.Config``.
    """

    def __init__(self, app: Any, startup_timeout: float = 10.0, **config: Any) -> None:
        self._app = app
        self._startup_timeout = startup_timeout
        self._config_kwargs = config
        self._state = LifecycleState.STOPPED
        self._finished = False
        self._server: _Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._socket: socket.socket | None = None
        self._shutdown_requested: asyncio.Event | None = None
        self._received_signal: str | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def port(self) -> int:
        """Port the listener is bound to (resolves port 0 to the real port)."""
        if self._socket is None:
            raise LifecycleError("Listener is not bound")
        return self._socket.getsockname()[1]

    def _get_event(self) -> asyncio.Event:
        """Get or create the shutdown event (lazy to avoid event loop issues)."""
        if self._shutdown_requested is None:
            self._shutdown_requested = asyncio.Event()
        return self._shutdown_requested

    def _bind(self, host: str, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(socket.SOMAXCONN)
            sock.setblocking(False)
        except OSError as exc:
            sock.close()
            raise LifecycleError(f"listen: cannot bind {host}:{port}: {exc}") from exc
        return sock

    async def start(self, host: str, port: int) -> None:
        """Bind and start serving in the background.

        Returns once the server is accepting connections.

        Raises:
            LifecycleError: If the lifecycle was already started, or the
                listener cannot be bound or fails to start.
        """
        if self._state is not LifecycleState.STOPPED or self._finished:
            raise LifecycleError(f"Cannot start from state {self._state.value}")

        self._socket = self._bind(host, port)
        config = uvicorn.Config(
            self._app,
            log_config=None,
            lifespan="off",
            **self._config_kwargs,
        )
        self._server = _Server(config)
        self._serve_task = asyncio.create_task(
            self._server.serve(sockets=[self._socket]), name="http-listener"
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._startup_timeout
        while not self._server.started:
            if self._serve_task.done():
                self._finished = True
                self._socket.close()
                exc = self._serve_task.exception()
                raise LifecycleError("Listener exited during startup") from exc
            if loop.time() >= deadline:
                self._finished = True
                self._server.should_exit = True
                self._serve_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._serve_task
                self._socket.close()
                raise LifecycleError("Listener did not start in time")
            await asyncio.sleep(0.01)

        self._state = LifecycleState.LISTENING
        logger.info("Listening on %s:%d", host, self.port)

    def request_shutdown(self) -> None:
        """Wake wait_for_shutdown_signal() without an OS signal."""
        self._get_event().set()

    async def wait_for_shutdown_signal(self) -> str | None:
        """Block until SIGINT/SIGTERM arrives or request_shutdown() is called.

        Returns:
            The name of the received signal, or None for request_shutdown().
        """
        loop = asyncio.get_running_loop()
        event = self._get_event()
        installed: list[signal.Signals] = []

        def _on_signal(sig: signal.Signals) -> None:
            self._received_signal = sig.name
            event.set()

        for sig in _SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, _on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not on the main thread, or platform without signal support.
                logger.debug("Cannot install handler for %s", sig.name)
            else:
                installed.append(sig)

        try:
            await event.wait()
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

        if self._received_signal:
            logger.info("Received %s, shutting down server...", self._received_signal)
        return self._received_signal

    async def shutdown(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> bool:
        """Stop accepting connections and drain in-flight requests.

        Waits for whichever comes first: every in-flight request completing,
        or ``timeout`` seconds elapsing. On timeout the remaining work is
        abandoned; that is reported but not an error.

        Returns:
            True if the drain completed within the window, False otherwise.

        Raises:
            LifecycleError: If the server is not listening.
        """
        if self._state is not LifecycleState.LISTENING:
            raise LifecycleError(f"Cannot shut down from state {self._state.value}")
        assert self._server is not None and self._serve_task is not None

        self._state = LifecycleState.DRAINING
        self._server.should_exit = True
        drained = True
        try:
            await asyncio.wait_for(asyncio.shield(self._serve_task), timeout)
        except TimeoutError:
            drained = False
            logger.warning(
                "Server forced to shutdown: in-flight requests still running after %.1fs",
                timeout,
            )
            self._server.force_exit = True
            self._serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._serve_task
        finally:
            if self._socket is not None:
                self._socket.close()
            self._state = LifecycleState.STOPPED
            self._finished = True

        if drained:
            logger.info("Server exiting")
        return drained
