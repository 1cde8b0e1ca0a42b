"""
Declarative endpoint definitions.

An endpoint is a pydantic model whose fields are the data of one remote operation
and whose class keywords describe where and how it is sent:

    class UpdateUser(Endpoint, path="users/{id}", method="PATCH", result=User):
        id: Annotated[int, Skip]
        notify: Annotated[bool | None, Query] = None
        name: str
        role: str

    result = UpdateUser(id=7, name="George", role="CEO").execute(client)
    user = result.parse()

Class keywords:
    path: URL path relative to the client's base address; `{field}` placeholders
        are filled from the instance's fields.
    method: HTTP method (default GET).
    request_type: Body encoding name (default "json"; also "form", "text").
    response_type: Payload interpretation (default "json"; also "text", "raw").
    result: Type that `EndpointResult.parse()` decodes into (default `Any`).

Field tags (via `Annotated`):
    Skip: never serialized (typically path parameters).
    Query: sent in the query string; omitted when `None` or empty.
    Body: sent in the body. Once any field is tagged `Body` or `Raw`, untagged
        fields are no longer part of the body.
    Raw: a `bytes` field sent verbatim as the whole body, bypassing the encoder.

The class statement itself validates all of this; a broken declaration raises
`EndpointDefinitionError` before any instance exists.
"""

from __future__ import annotations

import logging
import types
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, PydanticSchemaGenerationError, TypeAdapter
from pydantic.fields import FieldInfo
from pydantic_core import PydanticSerializationError

from .clients.http import SupportsAsyncSend, SupportsSend
from .clients.pipeline import Request
from .codecs import DEFAULT_CODECS, Codec, encode_query
from .enums import RequestMethod, RequestType, ResponseType
from .exceptions import EncodeError, EndpointDefinitionError
from .http import render_path, template_fields, with_query
from .result import EndpointResult

logger = logging.getLogger(__name__)


class Tag(Enum):
    SKIP = "skip"
    QUERY = "query"
    BODY = "body"
    RAW = "raw"


Skip = Tag.SKIP
Query = Tag.QUERY
Body = Tag.BODY
Raw = Tag.RAW

_OPTIONS = ("path", "method", "request_type", "response_type", "result")


@dataclass(frozen=True, slots=True)
class EndpointDescriptor:
    """
    Static metadata of an endpoint class.

    Every field appears in at most one of `query_fields`, `body_fields` or
    `raw_field`; the body opt-in rule is already applied.
    """

    path: str
    method: RequestMethod
    request_type: str
    response_type: ResponseType
    result: Any
    request_codec: Codec
    response_codec: Codec
    path_fields: tuple[str, ...]
    query_fields: tuple[str, ...]
    body_fields: tuple[str, ...]
    raw_field: str | None = None


def _coerce_enum(enum: type[Enum], value: Any, *, option: str, owner: str) -> Any:
    if isinstance(value, str) and not isinstance(value, Enum):
        value = value.upper() if enum is RequestMethod else value.lower()
    try:
        return enum(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum)
        raise EndpointDefinitionError(
            f"{owner}: invalid {option} {value!r}; expected one of {allowed}"
        ) from None


def _field_tag(owner: str, name: str, info: FieldInfo) -> Tag | None:
    tags = [m for m in info.metadata if isinstance(m, Tag)]
    if len(tags) > 1:
        raise EndpointDefinitionError(f"{owner}.{name} carries more than one tag: {tags}")
    return tags[0] if tags else None


def _is_bytes(annotation: Any) -> bool:
    if annotation is bytes:
        return True
    if get_origin(annotation) in (Union, types.UnionType):
        args = get_args(annotation)
        return bytes in args and all(a in (bytes, type(None)) for a in args)
    return False


def _check_result(owner: str, result: Any) -> Any:
    if isinstance(result, str):
        raise EndpointDefinitionError(f"{owner}: result must be a type, not the string {result!r}")
    try:
        TypeAdapter(result)
    except (PydanticSchemaGenerationError, TypeError) as e:
        raise EndpointDefinitionError(f"{owner}: result {result!r} cannot be decoded into: {e}") from e
    return result


def _resolve_descriptor(
    cls: type[Endpoint], options: dict[str, Any], parent: EndpointDescriptor | None
) -> EndpointDescriptor | None:
    owner = cls.__name__
    path = options.get("path", parent.path if parent else None)
    if path is None:
        if options:
            raise EndpointDefinitionError(f"{owner}: endpoint options given without a path")
        return None

    method = _coerce_enum(
        RequestMethod,
        options.get("method", parent.method if parent else RequestMethod.GET),
        option="method",
        owner=owner,
    )
    response_type = _coerce_enum(
        ResponseType,
        options.get("response_type", parent.response_type if parent else ResponseType.JSON),
        option="response_type",
        owner=owner,
    )
    request_type = options.get("request_type", parent.request_type if parent else RequestType.JSON)
    request_type = str(getattr(request_type, "value", request_type)).lower()
    if request_type not in DEFAULT_CODECS or request_type == ResponseType.RAW.value:
        raise EndpointDefinitionError(f"{owner}: unknown request_type {request_type!r}")
    result = _check_result(owner, options.get("result", parent.result if parent else Any))

    fields = cls.model_fields
    path_fields = template_fields(path)
    unknown = [name for name in path_fields if name not in fields]
    if unknown:
        raise EndpointDefinitionError(f"{owner}: path {path!r} references unknown fields {unknown}")

    tags = {name: _field_tag(owner, name, info) for name, info in fields.items()}
    raw_fields = [name for name, tag in tags.items() if tag is Tag.RAW]
    body_tagged = [name for name, tag in tags.items() if tag is Tag.BODY]
    if len(raw_fields) > 1:
        raise EndpointDefinitionError(f"{owner}: only one Raw field is allowed, found {raw_fields}")
    if raw_fields and body_tagged:
        raise EndpointDefinitionError(
            f"{owner}: Raw field {raw_fields[0]!r} cannot be combined with Body fields {body_tagged}"
        )
    for name in raw_fields:
        if not _is_bytes(fields[name].annotation):
            raise EndpointDefinitionError(f"{owner}.{name}: Raw fields must be annotated as bytes")

    if raw_fields or body_tagged:
        body_fields = tuple(body_tagged)
    else:
        body_fields = tuple(name for name, tag in tags.items() if tag is None)

    return EndpointDescriptor(
        path=path,
        method=method,
        request_type=request_type,
        response_type=response_type,
        result=result,
        request_codec=DEFAULT_CODECS.get(request_type),
        response_codec=DEFAULT_CODECS.get(response_type.value),
        path_fields=path_fields,
        query_fields=tuple(name for name, tag in tags.items() if tag is Tag.QUERY),
        body_fields=body_fields,
        raw_field=raw_fields[0] if raw_fields else None,
    )


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, tuple, dict)) and not value)


class Endpoint(BaseModel):
    """
    Base class for endpoint definitions.

    Subclasses declare their descriptor through class keywords (see the module
    docstring). A subclass without a `path` anywhere in its ancestry is an
    abstract base: it can share fields and options but cannot be executed.
    """

    model_config = ConfigDict(populate_by_name=True)

    __endpoint__: ClassVar[EndpointDescriptor | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        for option in _OPTIONS:
            kwargs.pop(option, None)
        super().__init_subclass__(**kwargs)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        options = {key: kwargs.pop(key) for key in _OPTIONS if key in kwargs}
        super().__pydantic_init_subclass__(**kwargs)
        cls.__endpoint__ = _resolve_descriptor(cls, options, cls.__endpoint__)

    @classmethod
    def descriptor(cls) -> EndpointDescriptor:
        if cls.__endpoint__ is None:
            raise EndpointDefinitionError(f"{cls.__name__} has no path and cannot be executed")
        return cls.__endpoint__

    # =========================================================================
    # Request building
    # =========================================================================

    def _dump(self, names: Iterable[str], *, encoding: str) -> dict[str, Any]:
        try:
            return self.model_dump(mode="json", by_alias=True, include=set(names))
        except PydanticSerializationError as e:
            raise EncodeError(f"Cannot serialize {type(self).__name__} fields: {e}", encoding=encoding) from e

    def build_path(self) -> str:
        """Render the path template with this instance's field values."""
        descriptor = self.descriptor()
        values = {name: getattr(self, name) for name in descriptor.path_fields}
        return render_path(descriptor.path, values)

    def build_query(self) -> list[tuple[str, Any]]:
        """Query parameters in declaration order; `None` and empty values are left out."""
        descriptor = self.descriptor()
        if not descriptor.query_fields:
            return []
        dumped = self._dump(descriptor.query_fields, encoding="query")
        return [(key, value) for key, value in dumped.items() if not _is_empty(value)]

    def build_body(self) -> bytes | None:
        """Encode the body, or return the Raw field's bytes untouched."""
        descriptor = self.descriptor()
        if descriptor.raw_field is not None:
            raw = getattr(self, descriptor.raw_field)
            return bytes(raw) if raw is not None else None
        if not descriptor.body_fields:
            return None
        fields = self._dump(descriptor.body_fields, encoding=descriptor.request_type)
        return descriptor.request_codec.encode(fields) or None

    def build_request(self) -> Request:
        """Build the transport-independent request for this endpoint."""
        descriptor = self.descriptor()
        url = with_query(self.build_path(), encode_query(self.build_query()))
        body = self.build_body()
        headers: tuple[tuple[str, str], ...] = ()
        if body is not None and descriptor.raw_field is None:
            headers = (("Content-Type", descriptor.request_codec.content_type),)
        return Request(
            method=descriptor.method.value,
            url=url,
            headers=headers,
            body=body,
            context={
                "endpoint": type(self).__name__,
                "request_type": descriptor.request_type,
                "response_type": descriptor.response_type.value,
            },
        )

    # =========================================================================
    # Execution
    # =========================================================================

    def transform(self, content: bytes) -> bytes:
        """
        Hook applied to the raw payload before it is decoded.

        Override to strip a response envelope or to escalate API-level errors
        embedded in a successful response. Runs only when the caller decodes.
        """
        return content

    def execute(self, client: SupportsSend) -> EndpointResult[Any]:
        """Execute this endpoint with a blocking client."""
        request = self.build_request()
        logger.info(f"Executing endpoint {type(self).__name__}")
        logger.debug(f"Endpoint request: {request.method} {request.url}")
        response = client.send(request)
        return EndpointResult(response=response, endpoint=self)

    async def execute_async(self, client: SupportsAsyncSend) -> EndpointResult[Any]:
        """Execute this endpoint with a non-blocking client; suspends only while sending."""
        request = self.build_request()
        logger.info(f"Executing endpoint {type(self).__name__}")
        logger.debug(f"Endpoint request: {request.method} {request.url}")
        response = await client.send(request)
        return EndpointResult(response=response, endpoint=self)
