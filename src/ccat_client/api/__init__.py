"""REST adapter for the Cat API."""

from __future__ import annotations

from ccat_client.api.core import ApiRequestOptions, HttpRequest, OpenAPIConfig
from ccat_client.api.services import PluginsService, SettingsEmbedderService


class CCatAPI:
    """Groups the REST services behind one object sharing a single config."""

    def __init__(self, config: OpenAPIConfig) -> None:
        self.config = config
        self.request = HttpRequest(config)
        self.plugins = PluginsService(self.request)
        self.settings_embedder = SettingsEmbedderService(self.request)


__all__ = [
    "ApiRequestOptions",
    "CCatAPI",
    "HttpRequest",
    "OpenAPIConfig",
    "PluginsService",
    "SettingsEmbedderService",
]
