"""Client combining the chat socket and the REST API of the Cheshire Cat."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ccat_client.api import CCatAPI, OpenAPIConfig
from ccat_client.config import CatSettings
from ccat_client.models import WebSocketState
from ccat_client.socket import (
    CatSocket,
    ConnectionHandler,
    ErrorHandler,
    MessageHandler,
)

logger = logging.getLogger(__name__)


def build_api(
    settings: CatSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CCatAPI:
    """Build the REST adapter for ``settings``, authenticated with its user and key."""
    return CCatAPI(
        OpenAPIConfig(
            base=settings.http_url,
            headers={
                "access_token": settings.auth_key or "",
                "user_id": settings.user,
            },
            timeout=settings.timeout,
            transport=transport,
        )
    )


class CatClient:
    """
    Single entry point to talk with a Cat.

    Example:
        async with CatClient(base_url="localhost", user="alice") as cat:
            cat.on_message(lambda msg: print(msg.content))
            cat.on_connected(lambda: cat.send("Hello!"))
            ...

    With ``instant=True`` (the default) the client connects on construction,
    which requires a running event loop.
    """

    def __init__(
        self,
        settings: CatSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        **options: Any,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Complete settings; when omitted they are built from ``options``
            transport: Optional httpx transport for the REST adapter
            **options: Fields of ``CatSettings`` (``base_url``, ``port``, ``user`` ...)
        """
        self._config = settings if settings is not None else CatSettings(**options)
        self._transport = transport
        self._socket = CatSocket(self._config)
        self._api: CCatAPI | None = None

        if self._config.instant:
            self.init()

    async def __aenter__(self) -> CatClient:
        return self.init()

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @property
    def config(self) -> CatSettings:
        return self._config

    @property
    def socket(self) -> CatSocket:
        return self._socket

    @property
    def api(self) -> CCatAPI | None:
        """REST adapter, None until ``init()``."""
        return self._api

    @property
    def auth_key(self) -> str | None:
        """Key sent as ``access_token``; setting it rebuilds the whole session."""
        return self._config.auth_key

    @auth_key.setter
    def auth_key(self, key: str) -> None:
        self._config.auth_key = key
        self.reset().init()

    @property
    def user_id(self) -> str:
        """Configured user; setting it rebuilds the whole session."""
        return self._config.user

    @user_id.setter
    def user_id(self, user: str) -> None:
        self._config.user = user
        self.reset().init()

    def init(self) -> CatClient:
        """Open the socket and build the REST adapter unless both already exist."""
        if not self._socket.active and self._api is None:
            self._socket.connect()
            self._api = build_api(self._config, self._transport)
            logger.debug(f"Client initialized for user {self._config.user}")
        return self

    def reset(self) -> CatClient:
        """Drop the socket and the REST adapter without reconnecting."""
        self._socket.reset()
        self._api = None
        return self

    def close(self) -> CatClient:
        """Close the socket; no reconnection follows."""
        self._socket.close()
        return self

    async def aclose(self) -> None:
        await self._socket.aclose()

    def send(
        self,
        message: str,
        data: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> CatClient:
        """
        Send a message to the Cat through the socket.

        Args:
            message: The message to send
            data: Custom fields sent along with the message
            user_id: Sender id, defaults to the configured user

        Raises:
            ValueError: If ``data`` has a ``text`` or ``user_id`` key
        """
        self._socket.send(message, data, user_id)
        return self

    def ready_state(self) -> WebSocketState:
        return self._socket.ready_state()

    def on_connected(self, handler: ConnectionHandler) -> CatClient:
        self._socket.on_connected(handler)
        return self

    def on_disconnected(self, handler: ConnectionHandler) -> CatClient:
        self._socket.on_disconnected(handler)
        return self

    def on_message(self, handler: MessageHandler) -> CatClient:
        self._socket.on_message(handler)
        return self

    def on_error(self, handler: ErrorHandler) -> CatClient:
        self._socket.on_error(handler)
        return self
