"""Provider-agnostic exceptions raised by cloud and control-plane clients."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for provider errors."""


class ProviderCredentialsError(ProviderError):
    """Credentials are missing or were rejected."""


class ProviderConnectionError(ProviderError):
    """Provider endpoint could not be reached."""


class ProviderAPIError(ProviderError):
    """Provider API returned an error response.

    Parameters
    ----------
    message : str
        Error message returned by the API
    error_code : str | None
        Provider error code (e.g. ``InvalidGroup.NotFound``)
    operation : str | None
        API operation that failed
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.operation = operation

    def __str__(self) -> str:
        if self.error_code:
            return f"{self.error_code}: {self.message}"
        return self.message
