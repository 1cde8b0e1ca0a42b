"""
Internal request pipeline primitives.

Requests and responses are modeled independently of the underlying HTTP transport
so cross-cutting behavior can be implemented as middleware. Both are immutable:
a hook that wants to change something returns a new value.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Literal, TypeAlias, TypedDict, TypeVar, cast

from ..exceptions import MiddlewareError

Header: TypeAlias = tuple[str, str]


class RequestContext(TypedDict, total=False):
    endpoint: str
    request_type: str
    response_type: str


class ResponseContext(TypedDict, total=False):
    http_version: str
    reason_phrase: str
    elapsed_seconds: float


def _find_header(headers: Sequence[Header], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers:
        if key.lower() == lowered:
            return value
    return None


def merge_headers(defaults: Sequence[Header], overrides: Sequence[Header]) -> tuple[Header, ...]:
    """Combine two header lists; a name present in `overrides` replaces every default of that name."""
    overridden = {key.lower() for key, _ in overrides}
    kept = [(key, value) for key, value in defaults if key.lower() not in overridden]
    return (*kept, *overrides)


@dataclass(frozen=True, slots=True)
class Request:
    method: str
    url: str
    headers: tuple[Header, ...] = ()
    body: bytes | None = None
    context: RequestContext = field(default_factory=lambda: cast(RequestContext, {}))

    def header(self, name: str) -> str | None:
        return _find_header(self.headers, name)

    def with_headers(self, *headers: Header) -> Request:
        """Return a copy with `headers` set, replacing any same-named headers."""
        return replace(self, headers=merge_headers(self.headers, headers))


@dataclass(frozen=True, slots=True)
class Response:
    status_code: int
    headers: tuple[Header, ...] = ()
    content: bytes = b""
    url: str = ""
    context: ResponseContext = field(default_factory=lambda: cast(ResponseContext, {}))

    def header(self, name: str) -> str | None:
        return _find_header(self.headers, name)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class Middleware:
    """
    A pair of hooks applied around every request a client sends.

    `request` runs before the transport call and `response` after it. Either
    hook may raise to abort the exchange; the chain reports that as a
    `MiddlewareError`. Subclasses override whichever hooks they need.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    def request(self, request: Request) -> Request:
        return request

    def response(self, response: Response) -> Response:
        return response


_T = TypeVar("_T", Request, Response)


def _invoke(middleware: Middleware, phase: Literal["request", "response"], value: _T) -> _T:
    name = getattr(middleware, "name", type(middleware).__name__)
    try:
        result = getattr(middleware, phase)(value)
    except MiddlewareError as e:
        if e.phase is None:
            e.phase = phase
        if e.middleware is None:
            e.middleware = name
        raise
    except Exception as e:
        raise MiddlewareError(f"Middleware rejected the {phase}: {e}", phase=phase, middleware=name) from e
    if not isinstance(result, type(value)):
        raise MiddlewareError(
            f"Middleware {phase} hook returned {type(result).__name__}, expected {type(value).__name__}",
            phase=phase,
            middleware=name,
        )
    return result


@dataclass(frozen=True, slots=True)
class MiddlewareChain:
    """
    Ordered middleware with stack discipline.

    Request hooks run in registration order; response hooks run in reverse
    registration order, so the first middleware registered sees the request
    first and the response last.
    """

    middlewares: tuple[Middleware, ...] = ()

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self.middlewares)

    def __len__(self) -> int:
        return len(self.middlewares)

    def extend(self, middlewares: Sequence[Any]) -> MiddlewareChain:
        return MiddlewareChain((*self.middlewares, *middlewares))

    def apply_request(self, request: Request) -> Request:
        for middleware in self.middlewares:
            request = _invoke(middleware, "request", request)
        return request

    def apply_response(self, response: Response) -> Response:
        for middleware in reversed(self.middlewares):
            response = _invoke(middleware, "response", response)
        return response
