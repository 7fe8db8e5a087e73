"""Exceptions raised while generating and loading wrapped summaries."""

from __future__ import annotations


class WrappedError(Exception):
    """Base exception for github-wrapped."""

    error = "wrapped_error"


class ConfigurationError(WrappedError):
    """Raised when required settings, such as the access token, are missing."""

    error = "configuration_error"


class RemoteQueryError(WrappedError):
    """Raised when a GitHub query fails or returns an error payload."""

    error = "remote_query_failed"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteDataError(WrappedError):
    """Raised when a GitHub response is missing the fields we rely on."""

    error = "remote_data_invalid"


class NotFoundError(WrappedError):
    error = "not_found"

    def __init__(self, message: str = "Not found", error: str | None = None):
        super().__init__(message)
        if error:
            self.error = error


class UnauthorizedError(WrappedError):
    error = "unauthorized"


class ForbiddenError(WrappedError):
    error = "private"
