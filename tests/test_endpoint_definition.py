from __future__ import annotations

from typing import Annotated, Any

import pytest
from pydantic import BaseModel

from restify import (
    Body,
    Endpoint,
    EndpointDefinitionError,
    Query,
    Raw,
    RequestMethod,
    ResponseType,
    Skip,
)


class User(BaseModel):
    id: int
    name: str


class ApiBase(Endpoint):
    token: Annotated[str, Skip] = "secret"


class Versioned(Endpoint, path="v1/things", method="post", request_type="form", result=User):
    name: str


class VersionedChild(Versioned, path="v1/things/{name}"):
    pass


def test_invalid_method_is_rejected_at_class_creation() -> None:
    with pytest.raises(EndpointDefinitionError, match="invalid method 'TEST'"):

        class Bad(Endpoint, path="test/path", method="TEST"):
            pass


def test_invalid_request_and_response_types_are_rejected() -> None:
    with pytest.raises(EndpointDefinitionError, match="request_type"):

        class BadRequest(Endpoint, path="test/path", request_type="BAD"):
            pass

    with pytest.raises(EndpointDefinitionError, match="response_type"):

        class BadResponse(Endpoint, path="test/path", response_type="BAD"):
            pass

    with pytest.raises(EndpointDefinitionError):

        class RawRequest(Endpoint, path="test/path", request_type="raw"):
            pass


def test_result_must_be_a_type() -> None:
    with pytest.raises(EndpointDefinitionError, match="result"):

        class BadResult(Endpoint, path="test/path", result="DoesNotExist"):
            pass


def test_raw_field_must_be_bytes() -> None:
    with pytest.raises(EndpointDefinitionError, match="bytes"):

        class TextRaw(Endpoint, path="test/path"):
            name: str
            data: Annotated[str, Raw]


def test_optional_bytes_raw_field_is_accepted() -> None:
    class MaybeRaw(Endpoint, path="test/path", method="PUT"):
        data: Annotated[bytes | None, Raw] = None

    assert MaybeRaw().build_body() is None
    assert MaybeRaw(data=b"x").build_body() == b"x"


def test_only_one_raw_field_is_allowed() -> None:
    with pytest.raises(EndpointDefinitionError, match="only one Raw field"):

        class TwoRaw(Endpoint, path="test/path"):
            name: str
            data: Annotated[bytes, Raw]
            data_two: Annotated[bytes, Raw]


def test_raw_field_cannot_be_combined_with_body_fields() -> None:
    with pytest.raises(EndpointDefinitionError, match="cannot be combined"):

        class Mixed(Endpoint, path="test/path"):
            data: Annotated[bytes, Raw]
            name: Annotated[str, Body]


def test_unknown_placeholder_is_rejected() -> None:
    with pytest.raises(EndpointDefinitionError, match="unknown fields"):

        class Missing(Endpoint, path="users/{user_id}"):
            id: int


def test_field_with_two_tags_is_rejected() -> None:
    with pytest.raises(EndpointDefinitionError, match="more than one tag"):

        class Confused(Endpoint, path="test/path"):
            name: Annotated[str, Query, Body]


def test_definition_errors_are_type_errors() -> None:
    assert issubclass(EndpointDefinitionError, TypeError)


def test_abstract_base_cannot_be_executed() -> None:
    assert ApiBase.__endpoint__ is None
    with pytest.raises(EndpointDefinitionError, match="no path"):
        ApiBase().build_request()


def test_abstract_base_fields_are_inherited() -> None:
    class Whoami(ApiBase, path="me"):
        verbose: Annotated[bool | None, Query] = None

    descriptor = Whoami.descriptor()
    assert descriptor.method is RequestMethod.GET
    assert descriptor.query_fields == ("verbose",)
    assert descriptor.body_fields == ()
    assert Whoami(verbose=True).build_request().url == "me?verbose=true"


def test_options_without_path_are_rejected() -> None:
    with pytest.raises(EndpointDefinitionError, match="without a path"):

        class NoPath(Endpoint, method="POST"):
            pass


def test_method_names_are_case_insensitive() -> None:
    assert Versioned.descriptor().method is RequestMethod.POST


def test_subclass_inherits_and_overrides_options() -> None:
    parent = Versioned.descriptor()
    child = VersionedChild.descriptor()
    assert child.path == "v1/things/{name}"
    assert child.method is parent.method
    assert child.request_type == "form"
    assert child.result is User
    assert child.path_fields == ("name",)


def test_defaults_describe_a_json_get_endpoint() -> None:
    class Defaults(Endpoint, path="x"):
        pass

    descriptor = Defaults.descriptor()
    assert descriptor.method is RequestMethod.GET
    assert descriptor.request_type == "json"
    assert descriptor.response_type is ResponseType.JSON
    assert descriptor.result is Any
