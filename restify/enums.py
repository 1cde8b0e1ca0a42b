"""Enumerations shared by endpoint descriptors and the request pipeline."""

from __future__ import annotations

from enum import Enum


class RequestMethod(str, Enum):
    """HTTP methods an endpoint can be declared with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    LIST = "LIST"

    @property
    def is_safe(self) -> bool:
        return self in (RequestMethod.GET, RequestMethod.HEAD)


class RequestType(str, Enum):
    """Names of the built-in request body encodings."""

    JSON = "json"
    FORM = "form"
    TEXT = "text"


class ResponseType(str, Enum):
    """How a response payload is interpreted: decoded (json/text) or untouched (raw)."""

    JSON = "json"
    TEXT = "text"
    RAW = "raw"
