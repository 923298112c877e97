"""Exceptions raised by the Cheshire Cat client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ccat_client.api.core import ApiRequestOptions
    from ccat_client.api.models import HTTPValidationError


class CatClientError(Exception):
    """Base exception for client errors."""


class ApiError(CatClientError):
    """A REST call answered with a non-success status."""

    def __init__(
        self,
        request: ApiRequestOptions,
        url: str,
        status: int,
        status_text: str,
        body: Any,
        message: str,
    ) -> None:
        """
        Initialize API error.

        Args:
            request: Options of the failed request
            url: Final URL that was called
            status: HTTP status code
            status_text: HTTP reason phrase
            body: Decoded response body (JSON or text)
            message: Declared error description for the status
        """
        super().__init__(message)
        self.request = request
        self.url = url
        self.status = status
        self.status_text = status_text
        self.body = body

    @property
    def validation_error(self) -> HTTPValidationError | None:
        """Typed body of a 422 response, if it has the expected shape."""
        from pydantic import ValidationError

        from ccat_client.api.models import HTTPValidationError

        if self.status != 422 or not isinstance(self.body, dict):
            return None
        try:
            return HTTPValidationError.model_validate(self.body)
        except ValidationError:
            return None
