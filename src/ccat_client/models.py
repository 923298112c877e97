"""Wire shapes and connection state for the chat socket."""

from __future__ import annotations

import json
from enum import Enum, IntEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

RESERVED_KEYS = frozenset({"text", "user_id"})

FrameT = TypeVar("FrameT", bound=BaseModel)


class WebSocketState(IntEnum):
    """Ready state of the chat socket, same numbering as the browser API."""

    CONNECTING = 0
    OPEN = 1
    CLOSING = 2
    CLOSED = 3


class SocketErrorName(str, Enum):
    """Error names raised locally by the client."""

    SOCKET_CLOSED = "SocketClosed"
    CONNECTION_ERROR = "WebSocketConnectionError"
    FAILED_RETRY = "FailedRetry"


class SocketError(BaseModel):
    """Error delivered to the error handler or the retry exhaustion callback.

    Server-reported errors keep every field they were sent with.
    """

    model_config = ConfigDict(extra="allow")

    name: str = "ServerError"
    description: Any = ""

    @classmethod
    def socket_closed(cls) -> SocketError:
        return cls(
            name=SocketErrorName.SOCKET_CLOSED.value,
            description="The connection to the server was closed",
        )

    @classmethod
    def connection_error(cls) -> SocketError:
        return cls(
            name=SocketErrorName.CONNECTION_ERROR.value,
            description="Something went wrong while connecting to the server",
        )

    @classmethod
    def failed_retry(cls, retries: int) -> SocketError:
        return cls(
            name=SocketErrorName.FAILED_RETRY.value,
            description=f"Failed to connect WebSocket after {retries} retries.",
        )


class SocketResponse(BaseModel):
    """Message pushed by the Cat: chat replies, streamed tokens, notifications."""

    model_config = ConfigDict(extra="allow")

    type: str = "chat"
    content: Any
    user_id: Any = None
    why: Any = None


def parse_frame(model: type[FrameT], data: dict[str, Any]) -> FrameT:
    """Build ``model`` from an inbound frame.

    Fields of an unexpected type are kept as sent instead of rejecting the
    frame.
    """
    try:
        return model.model_validate(data)
    except ValidationError:
        return model.model_construct(**data)


def is_message_response(data: Any) -> bool:
    """Tell a message payload apart from an error payload."""
    return isinstance(data, dict) and "content" in data and data.get("type") != "error"


def build_outbound_frame(
    message: str,
    user_id: str,
    data: dict[str, Any] | None = None,
) -> str:
    """
    Serialize a chat message for the socket.

    Raises:
        ValueError: If ``data`` tries to override ``text`` or ``user_id``
    """
    if data and RESERVED_KEYS & data.keys():
        raise ValueError('The data object should not have a "text" or a "user_id" property')
    return json.dumps({"text": message, "user_id": user_id, **(data or {})})
