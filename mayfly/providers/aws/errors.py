"""Translate botocore exceptions into provider exceptions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from mayfly.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
    ProviderError,
)

CREDENTIALS_ERROR_CODES = frozenset(
    (
        "AuthFailure",
        "UnrecognizedClientException",
        "InvalidClientTokenId",
        "SignatureDoesNotMatch",
    )
)


@contextmanager
def handle_aws_errors() -> Iterator[None]:
    """Re-raise botocore errors as provider errors.

    Raises
    ------
    ProviderCredentialsError
        If credentials are missing or rejected
    ProviderConnectionError
        If the endpoint cannot be reached or the request timed out
    ProviderAPIError
        For any other API error response
    ProviderError
        For any other botocore failure, such as invalid parameters
    """
    try:
        yield
    except (NoCredentialsError, PartialCredentialsError) as e:
        raise ProviderCredentialsError(str(e)) from e
    except (BotoConnectionError, HTTPClientError) as e:
        raise ProviderConnectionError(str(e)) from e
    except ClientError as e:
        error = e.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message", str(e))

        if code in CREDENTIALS_ERROR_CODES:
            raise ProviderCredentialsError(message) from e

        raise ProviderAPIError(
            message=message,
            error_code=code,
            operation=e.operation_name,
        ) from e
    except BotoCoreError as e:
        raise ProviderError(str(e)) from e
