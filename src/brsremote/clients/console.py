"""BrightScript debug console client.

Keeps one long-lived TCP connection to the simulator's debug console,
buffers its output line by line and sends Micro Debugger commands.

The console stream has no message framing: ``send_command`` returns the
lines that arrived while it waited. Commands on one client must be
issued one at a time by the caller; concurrent commands interleave
their output.

All state is owned by the event loop the client is used on. A single
reader task is the only consumer of the socket; when the stream ends or
fails it runs the close handler, which moves the client to
``disconnected`` and arms the reconnect timer.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import re

from brsremote.clients.base import (
    ConsoleConnectionError,
    ServiceUnreachableError,
    SimulatorClient,
    SimulatorError,
    SimulatorTimeoutError,
)
from brsremote.config.settings import SimulatorConfig
from brsremote.domain.models import ConnectionState

logger = logging.getLogger(__name__)

MAX_BUFFER_LINES = 1000
CONNECT_TIMEOUT = 10.0
RECONNECT_DELAY = 3.0
READ_CHUNK_SIZE = 4096

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def strip_ansi(text: str) -> str:
    """Remove ANSI color and cursor sequences (``ESC [ ... letter``)."""
    return ANSI_ESCAPE_RE.sub("", text)


class ConsoleClient(SimulatorClient):
    """Persistent debug-console session with automatic reconnection.

    Reconnection uses a fixed delay and retries for as long as the client
    has not been disconnected explicitly; there is no backoff and no
    attempt limit.

    Example usage::

        console = ConsoleClient(config)
        await console.connect()
        print(await console.send_command("bt"))
        await console.disconnect()
    """

    service = "console"

    def __init__(
        self,
        config: SimulatorConfig,
        connect_timeout: float = CONNECT_TIMEOUT,
        reconnect_delay: float = RECONNECT_DELAY,
        max_lines: int = MAX_BUFFER_LINES,
    ) -> None:
        super().__init__(config)
        self._connect_timeout = connect_timeout
        self._reconnect_delay = reconnect_delay
        self._max_lines = max_lines

        self._state = ConnectionState.DISCONNECTED
        self._writer: asyncio.StreamWriter | None = None
        self._read_task: asyncio.Task | None = None
        self._connect_task: asyncio.Task | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._auto_reconnect = False

        self._lines: list[str] = []
        self._lines_received = 0
        self._partial_line = ""

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    @property
    def partial_line(self) -> str:
        """Trailing text not yet terminated by a newline."""
        return self._partial_line

    @property
    def lines(self) -> list[str]:
        """A copy of the buffered lines, oldest first."""
        return list(self._lines)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the console connection.

        A no-op when already connected. Callers arriving while an attempt
        is in flight wait for that same attempt; only one socket is ever
        opened at a time.

        Raises:
            SimulatorTimeoutError: If the attempt exceeds the connect timeout.
            ServiceUnreachableError: If the console refuses the connection.
            ConsoleConnectionError: If disconnect() cancels the attempt.
        """
        if self._state is ConnectionState.CONNECTED:
            return
        self._auto_reconnect = True
        if self._connect_task is None or self._connect_task.done():
            self._connect_task = asyncio.get_running_loop().create_task(self._open())
        attempt = self._connect_task
        try:
            await asyncio.shield(attempt)
        except asyncio.CancelledError:
            # The shield keeps the attempt alive when only this caller is cancelled
            if not attempt.cancelled():
                raise
            raise ConsoleConnectionError(
                "Connection attempt cancelled", service=self.service
            ) from None

    async def ensure_connected(self) -> None:
        if not self.is_connected:
            await self.connect()

    async def _open(self) -> None:
        host, port = self._config.host, self._config.console_port
        self._state = ConnectionState.CONNECTING
        logger.info("Connecting to debug console at %s:%d", host, port)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=self._connect_timeout
            )
        except asyncio.TimeoutError as e:
            self._state = ConnectionState.DISCONNECTED
            self._schedule_reconnect()
            raise SimulatorTimeoutError("Console connection timed out", service=self.service) from e
        except OSError as e:
            self._state = ConnectionState.DISCONNECTED
            self._schedule_reconnect()
            raise ServiceUnreachableError(
                f"Cannot connect to console at {host}:{port}: {e}", service=self.service
            ) from e
        except asyncio.CancelledError:
            self._state = ConnectionState.DISCONNECTED
            raise
        finally:
            self._connect_task = None

        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        self._writer = writer
        self._state = ConnectionState.CONNECTED
        self._read_task = asyncio.get_running_loop().create_task(self._read_loop(reader))
        logger.info("Connected to debug console at %s:%d", host, port)

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                chunk = await reader.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._ingest(decoder.decode(chunk))
        except OSError as e:
            logger.warning("Debug console connection error: %s", e)
        finally:
            self._handle_close()

    def _handle_close(self) -> None:
        if self._writer is not None:
            self._writer.close()
        self._writer = None
        self._read_task = None
        self._state = ConnectionState.DISCONNECTED
        logger.info("Debug console connection closed")
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if not self._auto_reconnect or self._reconnect_handle is not None:
            return
        logger.debug("Reconnecting to debug console in %.1fs", self._reconnect_delay)
        self._reconnect_handle = asyncio.get_running_loop().call_later(
            self._reconnect_delay, self._fire_reconnect
        )

    def _fire_reconnect(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect())

    async def _reconnect(self) -> None:
        try:
            await self.connect()
        except SimulatorError as e:
            # The failed attempt has already re-armed the timer
            logger.debug("Debug console reconnect failed: %s", e)
        finally:
            self._reconnect_task = None

    async def disconnect(self) -> None:
        """Close the connection and stop reconnecting until connect() is called."""
        self._auto_reconnect = False
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

        current = asyncio.current_task()
        pending = [
            task
            for task in (self._reconnect_task, self._connect_task, self._read_task)
            if task is not None and task is not current and not task.done()
        ]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._reconnect_task = None
        self._connect_task = None
        self._read_task = None

        if self._writer is not None:
            self._writer.close()
            self._writer = None
        self._state = ConnectionState.DISCONNECTED
        logger.info("Disconnected from debug console")

    async def aclose(self) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Buffering
    # ------------------------------------------------------------------

    def _ingest(self, text: str) -> None:
        """Append one decoded chunk of console output to the line buffer."""
        segments = (self._partial_line + strip_ansi(text)).split("\n")
        self._partial_line = segments.pop()
        self._lines.extend(segments)
        self._lines_received += len(segments)
        if len(self._lines) > self._max_lines:
            self._lines = self._lines[-self._max_lines :]

    def get_recent_lines(self, n: int = 50) -> list[str]:
        """Return up to the last ``n`` buffered lines, oldest first."""
        if n <= 0:
            return []
        return self._lines[-n:]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_command(self, command: str, wait_ms: int = 1000) -> str:
        """Send a debugger command and collect the output that follows it.

        Writes ``command`` terminated by CRLF, waits ``wait_ms`` and
        returns the lines buffered during the wait, joined by newlines.

        Raises:
            ConsoleConnectionError: If there is no live connection to write to.
        """
        await self.ensure_connected()
        if self._writer is None:
            raise ConsoleConnectionError("Console not connected", service=self.service)

        received_before = self._lines_received
        try:
            self._writer.write(f"{command}\r\n".encode("utf-8"))
            await self._writer.drain()
        except OSError as e:
            raise ConsoleConnectionError(
                f"Failed to send console command: {e}", service=self.service
            ) from e
        logger.debug("Sent console command: %s", command)

        await asyncio.sleep(wait_ms / 1000)

        new_count = min(self._lines_received - received_before, len(self._lines))
        if new_count <= 0:
            return ""
        return "\n".join(self._lines[-new_count:])

    async def check_health(self) -> bool:
        try:
            await self.ensure_connected()
        except SimulatorError as e:
            logger.debug("Console health check failed: %s", e)
            return False
        return self.is_connected
