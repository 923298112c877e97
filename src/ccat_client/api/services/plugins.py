"""Plugin management endpoints."""

from __future__ import annotations

from typing import Any

from ccat_client.api.core import (
    VALIDATION_ERROR,
    ApiRequestOptions,
    FileContent,
    HttpRequest,
)
from ccat_client.api.models import (
    DeleteResponse,
    PluginDetails,
    PluginResponse,
    PluginsList,
)


class PluginsService:
    """List, install, toggle, inspect and remove plugins."""

    def __init__(self, http_request: HttpRequest) -> None:
        self.http_request = http_request

    async def list_available_plugins(self) -> PluginsList:
        """List installed plugins and the registry."""
        result = await self.http_request.request(
            ApiRequestOptions(method="GET", url="/plugins/")
        )
        return PluginsList.model_validate(result)

    async def upload_plugin(
        self,
        file: FileContent,
        filename: str = "plugin.zip",
        content_type: str = "application/zip",
    ) -> PluginResponse:
        """Install a new plugin from a zip file."""
        result = await self.http_request.request(
            ApiRequestOptions(
                method="POST",
                url="/plugins/upload/",
                form_data={"file": (filename, file, content_type)},
                media_type="multipart/form-data",
                errors=VALIDATION_ERROR,
            )
        )
        return PluginResponse.model_validate(result)

    async def toggle_plugin(self, plugin_id: str) -> dict[str, Any]:
        """Enable or disable a single plugin."""
        result: dict[str, Any] = await self.http_request.request(
            ApiRequestOptions(
                method="PUT",
                url="/plugins/toggle/{plugin_id}",
                path={"plugin_id": plugin_id},
                errors=VALIDATION_ERROR,
            )
        )
        return result

    async def get_plugin_details(self, plugin_id: str) -> PluginDetails:
        """Return information on a single plugin."""
        result = await self.http_request.request(
            ApiRequestOptions(
                method="GET",
                url="/plugins/{plugin_id}",
                path={"plugin_id": plugin_id},
                errors=VALIDATION_ERROR,
            )
        )
        return PluginDetails.model_validate(result)

    async def delete_plugin(self, plugin_id: str) -> DeleteResponse:
        """Physically remove a plugin."""
        result = await self.http_request.request(
            ApiRequestOptions(
                method="DELETE",
                url="/plugins/{plugin_id}",
                path={"plugin_id": plugin_id},
                errors=VALIDATION_ERROR,
            )
        )
        return DeleteResponse.model_validate(result)
