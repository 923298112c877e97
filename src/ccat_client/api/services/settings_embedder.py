"""Embedder settings endpoints."""

from __future__ import annotations

from typing import Any

from ccat_client.api.core import VALIDATION_ERROR, ApiRequestOptions, HttpRequest
from ccat_client.api.models import ConfigurationsResponse, SettingResponse


class SettingsEmbedderService:
    def __init__(self, http_request: HttpRequest) -> None:
        self.http_request = http_request

    async def get_embedder_settings(self) -> ConfigurationsResponse:
        """Get the list of the Embedders."""
        result = await self.http_request.request(
            ApiRequestOptions(method="GET", url="/settings/embedder/")
        )
        return ConfigurationsResponse.model_validate(result)

    async def upsert_embedder_setting(
        self,
        language_embedder_name: str,
        request_body: dict[str, Any],
    ) -> SettingResponse:
        """Create or update the settings of one embedder."""
        result = await self.http_request.request(
            ApiRequestOptions(
                method="PUT",
                url="/settings/embedder/{languageEmbedderName}",
                path={"languageEmbedderName": language_embedder_name},
                body=request_body,
                media_type="application/json",
                errors=VALIDATION_ERROR,
            )
        )
        return SettingResponse.model_validate(result)
