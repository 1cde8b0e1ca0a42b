"""
Built-in middleware.

Any object with `request(Request) -> Request` and `response(Response) -> Response`
hooks can be registered on a client; the classes here cover the common cases.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .clients.pipeline import Middleware, Request, Response
from .exceptions import ServerResponseError

logger = logging.getLogger(__name__)


class LoggingMiddleware(Middleware):
    """Log every request before it is sent and every response after it arrives."""

    def __init__(self, logger: logging.Logger = logger, level: int = logging.DEBUG):
        self._logger = logger
        self._level = level

    def request(self, request: Request) -> Request:
        size = len(request.body) if request.body else 0
        self._logger.log(self._level, f"Request: {request.method} {request.url} ({size} bytes)")
        return request

    def response(self, response: Response) -> Response:
        elapsed = response.context.get("elapsed_seconds")
        timing = f" in {elapsed:.3f}s" if elapsed is not None else ""
        self._logger.log(
            self._level,
            f"Response: {response.status_code} {response.url} ({len(response.content)} bytes){timing}",
        )
        return response


class HeadersMiddleware(Middleware):
    """Set fixed headers on every request, replacing same-named headers."""

    def __init__(self, headers: Mapping[str, str]):
        self._headers = tuple(headers.items())

    def request(self, request: Request) -> Request:
        return request.with_headers(*self._headers)


class RaiseForStatus(Middleware):
    """Reject any response whose status code is outside the 2xx range."""

    def response(self, response: Response) -> Response:
        if not response.is_success:
            raise ServerResponseError(
                f"Server responded with status {response.status_code} for {response.url}",
                status_code=response.status_code,
                content=response.content,
            )
        return response

