"""
HTTP clients that drive the request pipeline over httpx.

`Client` blocks the calling thread; `AsyncClient` suspends only at the transport
call. Both run the same exchange: resolve the URL against the base address, merge
default headers, apply request middleware, hand the request to the transport,
then apply response middleware in reverse order.

Custom clients subclass either one and override `dispatch`, the raw transport
call, to substitute any send capability (recording doubles, replay fixtures...).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Generator, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, TypeVar, runtime_checkable

import httpx

from ..exceptions import ClientConfigError, SendError
from ..http import join_url
from ..middleware import LoggingMiddleware
from ..policies import Policies
from .pipeline import Middleware, MiddlewareChain, Request, Response, merge_headers

logger = logging.getLogger(__name__)

_Exchange = Generator[Request, Response, Response]
_C = TypeVar("_C", bound="BaseClient")


@dataclass(frozen=True, slots=True)
class ClientConfig:
    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    middleware: Sequence[Middleware] = ()
    timeout: float = 30.0
    transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None
    policies: Policies = field(default_factory=Policies)
    log_requests: bool = False


@runtime_checkable
class SupportsSend(Protocol):
    def send(self, request: Request) -> Response: ...


@runtime_checkable
class SupportsAsyncSend(Protocol):
    async def send(self, request: Request) -> Response: ...


def _build_chain(config: ClientConfig) -> MiddlewareChain:
    middlewares: list[Middleware] = list(config.policies.middleware())
    if config.log_requests:
        middlewares.append(LoggingMiddleware())
    return MiddlewareChain(tuple(middlewares)).extend(config.middleware)


def _to_response(raw: httpx.Response, elapsed: float) -> Response:
    return Response(
        status_code=raw.status_code,
        headers=tuple(raw.headers.multi_items()),
        content=raw.content,
        url=str(raw.url),
        context={
            "http_version": raw.http_version,
            "reason_phrase": raw.reason_phrase,
            "elapsed_seconds": elapsed,
        },
    )


def _check_transport(config: ClientConfig, expected: type[Any]) -> Any:
    transport = config.transport
    if transport is not None and not isinstance(transport, expected):
        raise ClientConfigError(
            f"transport must be an httpx.{expected.__name__}, got {type(transport).__name__}"
        )
    return transport


def _finish(exchange: _Exchange, response: Response) -> Response:
    try:
        exchange.send(response)
    except StopIteration as done:
        return done.value
    raise RuntimeError("Request exchange must yield exactly once")


class BaseClient:
    """
    State shared by the blocking and non-blocking clients.

    A client is immutable after construction and safe to share between
    concurrent executions; only the httpx connection pool holds mutable state.
    """

    _http: Any

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        middleware: Sequence[Middleware] = (),
        timeout: float = 30.0,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
        policies: Policies | None = None,
        log_requests: bool = False,
    ):
        """
        Initialize the client.

        Args:
            base_url: Prefix for every relative endpoint path
            headers: Headers sent with every request unless the request sets its own
            middleware: Middleware appended to the chain, in order
            timeout: Request timeout in seconds
            transport: httpx transport replacing the network (e.g. `httpx.MockTransport`)
            policies: Cross-cutting request policies
            log_requests: Log all HTTP requests (for debugging)
        """
        self._init_from_config(
            ClientConfig(
                base_url=base_url,
                headers=dict(headers or {}),
                middleware=tuple(middleware),
                timeout=timeout,
                transport=transport,
                policies=policies or Policies(),
                log_requests=log_requests,
            )
        )

    def _init_from_config(self, config: ClientConfig) -> None:
        self._config = config
        self._chain = _build_chain(config)
        self._default_headers = tuple(config.headers.items())

    @classmethod
    def default(cls: type[_C], base_url: str) -> _C:
        """A client with no default headers and no middleware."""
        return cls(base_url)

    @classmethod
    def from_config(cls: type[_C], config: ClientConfig) -> _C:
        client = cls.__new__(cls)
        client._init_from_config(config)
        return client

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def middleware(self) -> MiddlewareChain:
        return self._chain

    def with_middleware(self: _C, *middleware: Middleware) -> _C:
        """
        Return a new client whose chain ends with `middleware`; this client is unchanged.

        The new client shares this client's connection pool, so closing either
        one closes both.
        """
        config = replace(self._config, middleware=(*self._config.middleware, *middleware))
        client = type(self).__new__(type(self))
        BaseClient._init_from_config(client, config)
        client._http = self._http
        return client

    def prepare(self, request: Request) -> Request:
        """Resolve the URL against the base address and attach default headers."""
        return replace(
            request,
            url=join_url(self._config.base_url, request.url),
            headers=merge_headers(self._default_headers, request.headers),
        )

    def _exchange(self, request: Request) -> _Exchange:
        prepared = self._chain.apply_request(self.prepare(request))
        logger.debug(f"Sending {prepared.method} {prepared.url}")
        response = yield prepared
        return self._chain.apply_response(response)

    def _send_error(self, request: Request, error: Exception) -> SendError:
        return SendError(
            f"{request.method} {request.url} failed: {error}",
            method=request.method,
            url=request.url,
        )


class Client(BaseClient):
    """
    Blocking client.

    Example:
        ```python
        with Client("https://api.example.com", headers={"X-Token": "..."}) as client:
            result = GetUser(id=42).execute(client)
            user = result.parse()
        ```
    """

    def _init_from_config(self, config: ClientConfig) -> None:
        super()._init_from_config(config)
        self._http = httpx.Client(timeout=config.timeout, transport=_check_transport(config, httpx.BaseTransport))

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._http.close()

    def send(self, request: Request) -> Response:
        """Send `request` through the middleware chain and return the final response."""
        exchange = self._exchange(request)
        prepared = next(exchange)
        return _finish(exchange, self.dispatch(prepared))

    def dispatch(self, request: Request) -> Response:
        """Perform the raw transport call for an already prepared request."""
        started = time.monotonic()
        try:
            raw = self._http.request(
                request.method,
                request.url,
                headers=list(request.headers),
                content=request.body,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise self._send_error(request, e) from e
        return _to_response(raw, time.monotonic() - started)


class AsyncClient(BaseClient):
    """
    Non-blocking client.

    Example:
        ```python
        async with AsyncClient("https://api.example.com") as client:
            result = await GetUser(id=42).execute_async(client)
        ```
    """

    def _init_from_config(self, config: ClientConfig) -> None:
        super()._init_from_config(config)
        self._http = httpx.AsyncClient(
            timeout=config.timeout, transport=_check_transport(config, httpx.AsyncBaseTransport)
        )

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    async def send(self, request: Request) -> Response:
        """Send `request` through the middleware chain, suspending only at the transport call."""
        exchange = self._exchange(request)
        prepared = next(exchange)
        try:
            response = await self.dispatch(prepared)
        except asyncio.CancelledError:
            logger.debug(f"Cancelled {prepared.method} {prepared.url}")
            exchange.close()
            raise
        return _finish(exchange, response)

    async def dispatch(self, request: Request) -> Response:
        """Perform the raw transport call for an already prepared request."""
        started = time.monotonic()
        try:
            raw = await self._http.request(
                request.method,
                request.url,
                headers=list(request.headers),
                content=request.body,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise self._send_error(request, e) from e
        return _to_response(raw, time.monotonic() - started)
