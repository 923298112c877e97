"""Response bodies of the Cat REST API.

Fields not listed here are kept as extra attributes; the client does not
validate payloads beyond their basic shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Plugin(_Body):
    """Installed or registry plugin."""

    id: str | None = None
    name: str
    description: str | None = None
    author_name: str | None = None
    author_url: str | None = None
    plugin_url: str | None = None
    tags: str | None = None
    thumb: str | None = None
    version: str | None = None
    active: bool | None = None


class PluginsFilters(_Body):
    query: str | None = None


class PluginsList(_Body):
    filters: PluginsFilters = Field(default_factory=PluginsFilters)
    installed: list[Plugin] = Field(default_factory=list)
    registry: list[Plugin] = Field(default_factory=list)


class PluginResponse(_Body):
    """Answer to a plugin upload."""

    filename: str
    content_type: str
    info: str


class PluginDetails(_Body):
    status: str
    data: Plugin


class DeleteResponse(_Body):
    deleted: str


class Setting(_Body):
    name: str
    value: dict[str, Any] = Field(default_factory=dict)
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    category: str | None = None
    setting_id: str | None = None
    updated_at: int | str | None = None


class SettingResponse(Setting):
    """Setting returned after an upsert."""


class ConfigurationsResponse(_Body):
    settings: list[Setting] = Field(default_factory=list)
    selected_configuration: str | None = None


class ValidationErrorItem(_Body):
    loc: list[str | int]
    msg: str
    type: str


class HTTPValidationError(_Body):
    """Body of a 422 answer."""

    detail: list[ValidationErrorItem] = Field(default_factory=list)
