"""
Serialization adapters for request bodies, query strings and response payloads.

A codec maps an ordered set of already JSON-compatible field values to body bytes,
and maps payload bytes back into a caller-chosen type. Codecs are stateless: the
same input always produces the same output, in declaration order.

Built-in codecs are registered by name in `DEFAULT_CODECS`:

- `json`: compact JSON bodies, JSON payloads decoded with pydantic
- `form`: `application/x-www-form-urlencoded`
- `text`: a single field sent as UTF-8 text
- `raw`: response-only, hands payload bytes back untouched
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, Protocol
from urllib.parse import parse_qsl, quote, urlencode

from pydantic import TypeAdapter, ValidationError

from .exceptions import DecodeError, EncodeError, EndpointDefinitionError


class Codec(Protocol):
    name: str
    content_type: str

    def encode(self, fields: Mapping[str, Any]) -> bytes: ...

    def decode(self, content: bytes, target: Any) -> Any: ...


def _validate(content: bytes, value: Any, target: Any) -> Any:
    try:
        return TypeAdapter(target).validate_python(value)
    except ValidationError as e:
        raise DecodeError(
            f"Response payload does not match {_type_name(target)}: {e}",
            content=content,
            target=target,
        ) from e


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


def _scalar(value: Any, *, encoding: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise EncodeError(
        f"Cannot encode value of type {type(value).__name__} as a {encoding} scalar",
        encoding=encoding,
    )


def _pairs(fields: Mapping[str, Any] | Sequence[tuple[str, Any]], *, encoding: str) -> list[tuple[str, str]]:
    items = fields.items() if isinstance(fields, Mapping) else fields
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _scalar(v, encoding=encoding)) for v in value if v is not None)
        else:
            pairs.append((key, _scalar(value, encoding=encoding)))
    return pairs


def encode_query(fields: Mapping[str, Any] | Sequence[tuple[str, Any]]) -> str:
    """
    Percent-encode query fields into a query string (without the leading `?`).

    `None` values and empty sequences are dropped; sequences repeat the key.
    An empty input yields an empty string.
    """
    return urlencode(_pairs(fields, encoding="query"), quote_via=quote)


class JSONCodec:
    name = "json"
    content_type = "application/json"

    def encode(self, fields: Mapping[str, Any]) -> bytes:
        if not fields:
            return b""
        try:
            text = json.dumps(dict(fields), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Cannot encode body as JSON: {e}", encoding=self.name) from e
        return text.encode("utf-8")

    def decode(self, content: bytes, target: Any) -> Any:
        try:
            return TypeAdapter(target).validate_json(content)
        except ValidationError as e:
            raise DecodeError(
                f"Response payload is not valid JSON for {_type_name(target)}: {e}",
                content=content,
                target=target,
            ) from e


class FormCodec:
    name = "form"
    content_type = "application/x-www-form-urlencoded"

    def encode(self, fields: Mapping[str, Any]) -> bytes:
        return urlencode(_pairs(fields, encoding=self.name)).encode("ascii")

    def decode(self, content: bytes, target: Any) -> Any:
        try:
            data = dict(parse_qsl(content.decode("utf-8"), keep_blank_values=True, strict_parsing=True))
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError(
                "Response payload is not valid form data", content=content, target=target
            ) from e
        return _validate(content, data, target)


class TextCodec:
    name = "text"
    content_type = "text/plain; charset=utf-8"

    def encode(self, fields: Mapping[str, Any]) -> bytes:
        if len(fields) != 1:
            raise EncodeError(
                f"Text bodies take exactly one field, got {len(fields)}", encoding=self.name
            )
        (value,) = fields.values()
        if value is None:
            return b""
        if isinstance(value, str):
            return value.encode("utf-8")
        return _scalar(value, encoding=self.name).encode("utf-8")

    def decode(self, content: bytes, target: Any) -> Any:
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("Response payload is not valid UTF-8", content=content, target=target) from e
        return _validate(content, text, target)


class RawCodec:
    name = "raw"
    content_type = "application/octet-stream"

    def encode(self, fields: Mapping[str, Any]) -> bytes:
        raise EncodeError("The raw codec does not encode fields; use a Raw field", encoding=self.name)

    def decode(self, content: bytes, target: Any) -> Any:
        if target in (bytes, Any):
            return content
        return _validate(content, content, target)


class CodecRegistry:
    """
    Registry mapping encoding names to codecs.

    Endpoint classes look their codecs up once, when the class is declared.
    """

    def __init__(self, codecs: Mapping[str, Codec] | None = None):
        self._codecs: dict[str, Codec] = {}
        if codecs:
            for name, codec in codecs.items():
                self.register(name, codec)

    def register(self, name: str, codec: Codec) -> None:
        self._codecs[str(getattr(name, "value", name)).lower()] = codec

    def __contains__(self, name: object) -> bool:
        return str(getattr(name, "value", name)).lower() in self._codecs

    def get(self, name: str) -> Codec:
        key = str(getattr(name, "value", name)).lower()
        try:
            return self._codecs[key]
        except KeyError:
            known = ", ".join(sorted(self._codecs))
            raise EndpointDefinitionError(f"Unknown encoding {name!r}; known encodings: {known}") from None


DEFAULT_CODECS = CodecRegistry(
    {
        "json": JSONCodec(),
        "form": FormCodec(),
        "text": TextCodec(),
        "raw": RawCodec(),
    }
)
