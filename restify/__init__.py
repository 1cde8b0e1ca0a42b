"""
restify: declarative HTTP endpoints.

Describe a remote endpoint once, as a typed model, and get request building,
serialization, middleware and response decoding for free.

Example:
    ```python
    from typing import Annotated

    from restify import Client, Endpoint, Query, Skip


    class GetRepo(Endpoint, path="repos/{owner}/{name}", result=Repo):
        owner: Annotated[str, Skip]
        name: Annotated[str, Skip]
        expand: Annotated[str | None, Query] = None


    with Client("https://api.example.com") as client:
        repo = GetRepo(owner="octo", name="hello").execute(client).parse()
    ```
"""

from __future__ import annotations

from .clients import (
    AsyncClient,
    Client,
    ClientConfig,
    Middleware,
    MiddlewareChain,
    Request,
    Response,
)
from .codecs import DEFAULT_CODECS, CodecRegistry, encode_query
from .endpoint import Body, Endpoint, EndpointDescriptor, Query, Raw, Skip, Tag
from .enums import RequestMethod, RequestType, ResponseType
from .exceptions import (
    ClientConfigError,
    DecodeError,
    EncodeError,
    EndpointDefinitionError,
    MiddlewareError,
    PathBuildError,
    RestifyError,
    SendError,
    ServerResponseError,
    WriteNotAllowedError,
)
from .middleware import HeadersMiddleware, LoggingMiddleware, RaiseForStatus
from .policies import Policies, WritePolicy
from .result import EndpointResult

__version__ = "0.1.0"

__all__ = [
    "AsyncClient",
    "Body",
    "Client",
    "ClientConfig",
    "ClientConfigError",
    "CodecRegistry",
    "DEFAULT_CODECS",
    "DecodeError",
    "EncodeError",
    "Endpoint",
    "EndpointDefinitionError",
    "EndpointDescriptor",
    "EndpointResult",
    "HeadersMiddleware",
    "LoggingMiddleware",
    "Middleware",
    "MiddlewareChain",
    "MiddlewareError",
    "PathBuildError",
    "Policies",
    "Query",
    "RaiseForStatus",
    "Raw",
    "Request",
    "RequestMethod",
    "RequestType",
    "Response",
    "ResponseType",
    "RestifyError",
    "SendError",
    "ServerResponseError",
    "Skip",
    "Tag",
    "WriteNotAllowedError",
    "WritePolicy",
    "encode_query",
]
