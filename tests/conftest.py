"""Pytest configuration and shared fixtures for ccat-client tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable, Iterator
from typing import Any
from unittest.mock import patch

import pytest
from websockets.protocol import State

from ccat_client.config import CatSettings, WebSocketSettings

_CLOSE = object()


class FakeConnection:
    """Stands in for a websockets ClientConnection."""

    def __init__(
        self,
        frames: Iterable[str | bytes] = (),
        closed_by_server: bool = False,
        auto_reply: dict[str, Any] | None = None,
    ) -> None:
        self.state = State.OPEN
        self.sent: list[str] = []
        self.send_error: BaseException | None = None
        self.close_calls = 0
        self._auto_reply = auto_reply
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        for frame in frames:
            self._inbox.put_nowait(frame)
        if closed_by_server:
            self._inbox.put_nowait(_CLOSE)

    async def send(self, payload: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(payload)
        if self._auto_reply is not None:
            self.push(json.dumps(self._auto_reply))

    async def close(self) -> None:
        self.close_calls += 1
        if self.state is State.OPEN:
            self.state = State.CLOSING
            self._inbox.put_nowait(_CLOSE)

    def push(self, frame: str | bytes) -> None:
        """Deliver a frame from the server."""
        self._inbox.put_nowait(frame)

    def drop(self, exc: BaseException | None = None) -> None:
        """Close from the server side, optionally abnormally."""
        self._inbox.put_nowait(exc if exc is not None else _CLOSE)

    def __aiter__(self) -> FakeConnection:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._inbox.get()
        if item is _CLOSE:
            self.state = State.CLOSED
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self.state = State.CLOSED
            raise item
        return item


class FakeServer:
    """Answers patched ``connect()`` calls with scripted outcomes.

    Each call pops the next entry of ``script``: a FakeConnection is handed
    out, an exception is raised. An empty script yields an open connection.
    """

    def __init__(self) -> None:
        self.script: list[FakeConnection | BaseException] = []
        self.connections: list[FakeConnection] = []
        self.urls: list[str] = []
        self.kwargs: list[dict[str, Any]] = []
        self.gate: asyncio.Event | None = None

    @property
    def attempts(self) -> int:
        return len(self.urls)

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]

    def queue(self, **kwargs: Any) -> FakeConnection:
        """Script the connection handed to the next connect() call."""
        conn = FakeConnection(**kwargs)
        self.script.append(conn)
        return conn

    def queue_closing(self, count: int) -> None:
        """Script ``count`` connections that the server closes right away."""
        for _ in range(count):
            self.queue(closed_by_server=True)

    def queue_error(self, exc: BaseException) -> None:
        self.script.append(exc)

    async def connect(self, url: str, **kwargs: Any) -> FakeConnection:
        self.urls.append(url)
        self.kwargs.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.script.pop(0) if self.script else FakeConnection()
        if isinstance(outcome, BaseException):
            raise outcome
        self.connections.append(outcome)
        return outcome


@pytest.fixture
def fake_server() -> Iterator[FakeServer]:
    """Patch the websockets connect call used by the socket session."""
    server = FakeServer()
    with patch("ccat_client.socket.connect", new=server.connect):
        yield server


@pytest.fixture
def settings() -> CatSettings:
    """Settings with instant retries so reconnect tests run fast."""
    return CatSettings(
        base_url="example.com",
        user="alice",
        instant=False,
        ws=WebSocketSettings(delay=0, retries=3),
    )


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    """Poll a predicate on the running loop until it holds."""

    async def _wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
        async def _poll() -> None:
            while not predicate():
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_poll(), timeout)

    return _wait_until
