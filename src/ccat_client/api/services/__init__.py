"""REST services grouped by resource."""

from ccat_client.api.services.plugins import PluginsService
from ccat_client.api.services.settings_embedder import SettingsEmbedderService

__all__ = ["PluginsService", "SettingsEmbedderService"]
