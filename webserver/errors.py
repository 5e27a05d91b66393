"""
Error taxonomy for the request pipeline.

Every stage of the connection pipeline signals failure by raising one of
these. The connection handler is the only place they are caught and turned
into responses.
"""

from typing import Optional


class ConfigError(Exception):
    """Raised when the server configuration is invalid at startup."""


class EmptyRequest(Exception):
    """The peer closed the connection without sending a request line."""


class HttpError(Exception):
    """
    Base class for failures that map to an HTTP error response.

    The message is shown to the client, so it must never contain paths,
    exception text or other internal details.
    """

    status_code = 500
    message = "The server encountered an unexpected error."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MalformedRequest(HttpError):
    status_code = 400
    message = "The request line could not be understood."


class ForbiddenPath(HttpError):
    status_code = 403
    message = "Access to the requested resource is forbidden."


class UnsupportedType(HttpError):
    status_code = 403
    message = "The requested file type is not served."


class NotFound(HttpError):
    status_code = 404
    message = "The requested resource was not found."


class MethodNotAllowed(HttpError):
    status_code = 405
    message = "Only GET requests are supported."


class IoFailure(HttpError):
    status_code = 500
    message = "The server could not complete the request."


class UnexpectedFailure(HttpError):
    status_code = 500
