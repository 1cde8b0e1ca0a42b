"""
Exception hierarchy for restify.

Every failure the execution pipeline can report derives from `RestifyError`, so
callers can catch the whole family in one place or pick out a specific stage.
"""

from __future__ import annotations

from typing import Any, Literal


class RestifyError(Exception):
    """Base class for all restify errors."""


class EndpointDefinitionError(RestifyError, TypeError):
    """
    An endpoint class is declared incorrectly.

    Raised from the `class` statement itself (unknown placeholder, conflicting
    field tags, invalid method or codec), never during execution.
    """


class ClientConfigError(RestifyError, TypeError):
    """A client was configured with an option it cannot honour (e.g. a transport of the wrong kind)."""


class PathBuildError(RestifyError):
    """A path placeholder could not be resolved against the endpoint's fields."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class EncodeError(RestifyError):
    """A field value could not be serialized under the active encoding."""

    def __init__(self, message: str, *, encoding: str | None = None):
        super().__init__(message)
        self.encoding = encoding


class SendError(RestifyError):
    """The transport failed to deliver the request (connection, timeout, TLS)."""

    def __init__(self, message: str, *, method: str | None = None, url: str | None = None):
        super().__init__(message)
        self.method = method
        self.url = url


class MiddlewareError(RestifyError):
    """
    A middleware hook rejected the request or the response.

    `phase` is "request" for pre-send hooks and "response" for post-receive
    hooks; `middleware` names the hook that failed.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: Literal["request", "response"] | None = None,
        middleware: str | None = None,
    ):
        super().__init__(message)
        self.phase = phase
        self.middleware = middleware

    def __str__(self) -> str:
        base = super().__str__()
        if self.middleware and self.phase:
            return f"{base} (middleware={self.middleware}, phase={self.phase})"
        return base


class WriteNotAllowedError(MiddlewareError):
    """A write request was blocked by the client's write policy."""

    def __init__(self, message: str, *, method: str, url: str):
        super().__init__(message)
        self.method = method
        self.url = url


class ServerResponseError(MiddlewareError):
    """The server answered with a non-2xx status and a middleware enforces success."""

    def __init__(self, message: str, *, status_code: int, content: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.content = content


class DecodeError(RestifyError):
    """A response payload could not be decoded into the requested type."""

    def __init__(self, message: str, *, content: bytes = b"", target: Any = None):
        super().__init__(message)
        self.content = content
        self.target = target
