"""WebSocket session for chatting with the Cat.

A ``CatSocket`` owns at most one live connection to
``ws[s]://host[:port]/<path>/<user>``. Every callback (open, close, frames,
the reconnect timer) runs on the event loop that was running when
``connect()`` was called. Each event class has a single handler slot;
registering a handler replaces the previous one.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosedError, WebSocketException

from ccat_client.config import CatSettings
from ccat_client.models import (
    SocketError,
    SocketResponse,
    WebSocketState,
    build_outbound_frame,
    is_message_response,
    parse_frame,
)

logger = logging.getLogger(__name__)

ConnectionHandler = Callable[[], None]
MessageHandler = Callable[[SocketResponse], None]
ErrorHandler = Callable[[SocketError, BaseException | None], None]


class CatSocket:
    """Chat socket with bounded automatic reconnection."""

    def __init__(self, settings: CatSettings) -> None:
        self.settings = settings

        self._ws: ClientConnection | None = None
        self._task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._background: set[asyncio.Task[Any]] = set()

        # Bumped on every (re)connect; close events of older connections
        # never drive the retry policy.
        self._generation = 0
        self._explicitly_closed = False
        self._retried = 0

        self._connected_handler: ConnectionHandler | None = None
        self._disconnected_handler: ConnectionHandler | None = None
        self._message_handler: MessageHandler | None = None
        self._error_handler: ErrorHandler | None = None

    @property
    def retried(self) -> int:
        """Unexpected closes counted since the last reset."""
        return self._retried

    @property
    def explicitly_closed(self) -> bool:
        return self._explicitly_closed

    @property
    def active(self) -> bool:
        """True while a connection is held, until ``reset()`` drops it."""
        return self._task is not None

    # ==================== Handlers ====================

    def on_connected(self, handler: ConnectionHandler) -> CatSocket:
        """Call ``handler`` when the socket opens."""
        self._connected_handler = handler
        return self

    def on_disconnected(self, handler: ConnectionHandler) -> CatSocket:
        """Call ``handler`` after every close, once the retry decision is made."""
        self._disconnected_handler = handler
        return self

    def on_message(self, handler: MessageHandler) -> CatSocket:
        """Call ``handler`` with each message pushed by the Cat."""
        self._message_handler = handler
        return self

    def on_error(self, handler: ErrorHandler) -> CatSocket:
        """Call ``handler(error, exception)`` for local, transport and server errors.

        ``exception`` is the underlying exception for transport failures and
        ``None`` otherwise.
        """
        self._error_handler = handler
        return self

    # ==================== Lifecycle ====================

    def connect(self) -> None:
        """Open the socket. Completion is signalled through ``on_connected``.

        Must be called with an event loop running. Any connection already held
        is closed and replaced.
        """
        self._explicitly_closed = False
        self._open()

    def close(self) -> CatSocket:
        """Close the socket and stop reconnecting. Safe to call repeatedly."""
        self._explicitly_closed = True
        self._cancel_retry()
        self._shutdown_connection()
        return self

    def reset(self) -> CatSocket:
        """Clear the retry counter, close and drop the connection without reopening."""
        self._retried = 0
        self.close()
        self._ws = None
        self._task = None
        return self

    async def aclose(self) -> None:
        """Close the socket and wait for the connection to wind down."""
        task = self._task
        self.close()
        pending = [t for t in (task, *self._background) if t is not None and not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def ready_state(self) -> WebSocketState:
        """Current connection state; CLOSED when there is no socket."""
        if self._ws is not None:
            state = WebSocketState(int(self._ws.state))
            # close() only schedules the closing handshake
            if state == WebSocketState.OPEN and self._explicitly_closed:
                return WebSocketState.CLOSING
            return state
        if self._task is not None and not self._task.done():
            return WebSocketState.CONNECTING
        return WebSocketState.CLOSED

    # ==================== Messaging ====================

    def send(
        self,
        message: str,
        data: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> CatSocket:
        """
        Send a chat message to the Cat.

        Args:
            message: Text of the message
            data: Extra fields merged into the frame
            user_id: Sender id, defaults to the configured user

        Raises:
            ValueError: If ``data`` contains ``text`` or ``user_id``
        """
        sender = user_id if user_id is not None else self.settings.user
        payload = build_outbound_frame(message, sender, data)

        ws = self._ws
        if ws is None or self.ready_state() != WebSocketState.OPEN:
            self._emit_error(SocketError.socket_closed())
            return self

        self._spawn(self._write(ws, payload))
        return self

    async def _write(self, ws: ClientConnection, payload: str) -> None:
        try:
            await ws.send(payload)
        except (OSError, WebSocketException) as e:
            logger.error(f"Failed to send message: {e}")
            self._emit_error(SocketError.connection_error(), e)

    # ==================== Connection loop ====================

    def _open(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._cancel_retry()
        self._shutdown_connection()

        self._generation += 1
        self._ws = None
        url = self.settings.ws_url
        logger.info(f"Connecting to WebSocket at {url}")
        self._task = self._loop.create_task(
            self._run(url, self._generation),
            name=f"ccat-socket-{self._generation}",
        )

    async def _run(self, url: str, generation: int) -> None:
        cancelled = False
        try:
            try:
                ws = await connect(url, open_timeout=self.settings.timeout)
            except (OSError, TimeoutError, WebSocketException) as e:
                logger.error(f"WebSocket connection to {url} failed: {e}")
                self._emit_error(SocketError.connection_error(), e)
                return

            if generation != self._generation:
                await ws.close()
                return

            self._ws = ws
            logger.debug(f"WebSocket connected: {url}")
            self._invoke("connected", self._connected_handler)

            try:
                async for frame in ws:
                    self._dispatch(frame)
            except ConnectionClosedError as e:
                logger.warning(f"WebSocket connection lost: {e}")
                self._emit_error(SocketError.connection_error(), e)
        except asyncio.CancelledError:
            cancelled = True
            raise
        finally:
            self._handle_close(generation, retry=not cancelled)

    def _handle_close(self, generation: int, retry: bool = True) -> None:
        # A cancelled reader (close during the handshake, loop shutdown)
        # is never an unexpected close.
        if retry and generation == self._generation and not self._explicitly_closed:
            ws_settings = self.settings.ws
            self._retried += 1
            if ws_settings.retries < 0 or self._retried < ws_settings.retries:
                logger.info(
                    f"Reconnecting in {ws_settings.delay}s "
                    f"(attempt {self._retried}/{ws_settings.retries})"
                )
                loop = self._loop or asyncio.get_running_loop()
                self._retry_handle = loop.call_later(
                    ws_settings.delay, self._reconnect, generation
                )
            else:
                logger.warning(f"Giving up after {ws_settings.retries} retries")
                self._invoke(
                    "retry exhaustion",
                    ws_settings.on_failed,
                    SocketError.failed_retry(ws_settings.retries),
                )
        self._invoke("disconnected", self._disconnected_handler)

    def _reconnect(self, generation: int) -> None:
        self._retry_handle = None
        if generation == self._generation and not self._explicitly_closed:
            self._open()

    def _dispatch(self, frame: str | bytes) -> None:
        if not isinstance(frame, str):
            logger.debug(f"Dropping binary frame of {len(frame)} bytes")
            return

        try:
            data = json.loads(frame)
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON received: {frame!r}")
            return

        if is_message_response(data):
            self._invoke("message", self._message_handler, parse_frame(SocketResponse, data))
        elif isinstance(data, dict):
            self._emit_error(parse_frame(SocketError, data))
        else:
            self._emit_error(SocketError(description=frame))

    def _shutdown_connection(self) -> None:
        task, ws = self._task, self._ws
        if task is None or task.done():
            return
        if ws is None:
            # Still in the opening handshake
            task.cancel()
        else:
            self._spawn(ws.close())

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    # ==================== Helpers ====================

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _emit_error(self, error: SocketError, exc: BaseException | None = None) -> None:
        self._invoke("error", self._error_handler, error, exc)

    def _invoke(self, event: str, handler: Callable[..., None] | None, *args: Any) -> None:
        if handler is None:
            return
        try:
            handler(*args)
        except Exception as e:
            logger.error(f"Error in {event} handler: {e}", exc_info=True)
