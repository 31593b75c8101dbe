"""Core custom exceptions for the application."""


class ApiError(Exception):
    """Base exception for errors rendered as ``{"success": false, "message": ...}``.

    ``message`` is shown to the client; ``error`` carries internal detail that is
    only exposed outside production.
    """

    status_code: int = 500

    def __init__(self, message: str, *, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(ApiError):
    """Missing or invalid request input."""

    status_code = 400


class AuthenticationError(ApiError):
    """Bad credentials or an unusable token."""

    status_code = 401


class NotFoundError(ApiError):
    """The requested resource does not exist."""

    status_code = 404


class ServerError(ApiError):
    """Unexpected failure while serving a request."""

    status_code = 500
