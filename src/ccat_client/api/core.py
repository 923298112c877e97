"""Request plumbing shared by the REST services.

Each call opens its own ``httpx.AsyncClient``; the adapter holds no
connection pool, so it can be discarded at any time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import IO, Any, Literal
from urllib.parse import quote

import httpx

from ccat_client.errors import ApiError

logger = logging.getLogger(__name__)

FileContent = bytes | IO[bytes]
HttpMethod = Literal["GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH"]

COMMON_ERRORS: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}

VALIDATION_ERROR = {422: "Validation Error"}


@dataclass
class OpenAPIConfig:
    """Connection settings of the REST adapter."""

    base: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None


@dataclass
class ApiRequestOptions:
    """Description of one REST call."""

    method: HttpMethod
    url: str
    path: dict[str, Any] | None = None
    query: dict[str, Any] | None = None
    body: Any = None
    form_data: dict[str, Any] | None = None
    media_type: str | None = None
    errors: dict[int, str] | None = None


def get_url(options: ApiRequestOptions) -> str:
    """Substitute ``{name}`` placeholders of the URL template."""
    url = options.url
    for name, value in (options.path or {}).items():
        url = url.replace(f"{{{name}}}", quote(str(value), safe=""))
    return url


def split_form_data(
    form_data: dict[str, Any],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split form fields into plain values and file uploads."""
    data: dict[str, Any] = {}
    files: dict[str, Any] = {}
    for key, value in form_data.items():
        if value is None:
            continue
        if isinstance(value, (bytes, bytearray, tuple)) or hasattr(value, "read"):
            files[key] = value
        elif isinstance(value, list):
            data[key] = [str(v) for v in value]
        else:
            data[key] = str(value)
    return data, files


class HttpRequest:
    """Sends ``ApiRequestOptions`` with httpx and decodes the answer."""

    def __init__(self, config: OpenAPIConfig) -> None:
        self.config = config

    async def request(self, options: ApiRequestOptions) -> Any:
        """
        Perform a request.

        Returns:
            Decoded JSON body, text for non-JSON answers, None for empty ones

        Raises:
            ApiError: If the server answers with an error status
            httpx.HTTPError: On network failures
        """
        url = get_url(options)
        kwargs: dict[str, Any] = {}
        if options.query:
            kwargs["params"] = {k: v for k, v in options.query.items() if v is not None}
        if options.form_data is not None:
            data, files = split_form_data(options.form_data)
            kwargs["data"] = data
            kwargs["files"] = files
        elif options.body is not None:
            if options.media_type and not options.media_type.endswith("json"):
                kwargs["content"] = options.body
                kwargs["headers"] = {"Content-Type": options.media_type}
            else:
                kwargs["json"] = options.body

        logger.debug(f"{options.method} {self.config.base}{url}")
        async with httpx.AsyncClient(
            base_url=self.config.base,
            headers=self.config.headers,
            timeout=self.config.timeout,
            transport=self.config.transport,
        ) as client:
            response = await client.request(options.method, url, **kwargs)

        body = self.get_response_body(response)
        self.catch_error_codes(options, response, body)
        return body

    @staticmethod
    def get_response_body(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError:
                logger.warning(f"Invalid JSON body from {response.request.url}")
        return response.text

    @staticmethod
    def catch_error_codes(
        options: ApiRequestOptions,
        response: httpx.Response,
        body: Any,
    ) -> None:
        errors = {**COMMON_ERRORS, **(options.errors or {})}
        status = response.status_code
        url = str(response.request.url)

        message = errors.get(status)
        if message is None and response.is_success:
            return
        if message is None:
            message = (
                f"Generic Error: status: {status}; "
                f"status text: {response.reason_phrase}; body: {body!r}"
            )

        logger.debug(f"{options.method} {url} failed: {status} {message}")
        raise ApiError(options, url, status, response.reason_phrase, body, message)
