"""ccat-client - talk to a Cheshire Cat from Python.

A chat WebSocket session with bounded automatic reconnection, and an async
REST adapter for the plugin and embedder settings endpoints.
"""

from ccat_client.api import CCatAPI, OpenAPIConfig
from ccat_client.client import CatClient
from ccat_client.config import CatSettings, LoggingSettings, WebSocketSettings, load_settings
from ccat_client.errors import ApiError, CatClientError
from ccat_client.models import SocketError, SocketErrorName, SocketResponse, WebSocketState
from ccat_client.socket import CatSocket

__version__ = "0.4.0"

__all__ = [
    "ApiError",
    "CCatAPI",
    "CatClient",
    "CatClientError",
    "CatSettings",
    "CatSocket",
    "LoggingSettings",
    "OpenAPIConfig",
    "SocketError",
    "SocketErrorName",
    "SocketResponse",
    "WebSocketSettings",
    "WebSocketState",
    "load_settings",
]
