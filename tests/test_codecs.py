from __future__ import annotations

from typing import Annotated, Any

import httpx
import pytest
from pydantic import BaseModel

from restify import DEFAULT_CODECS, Client, CodecRegistry, Endpoint, RequestType, encode_query
from restify.codecs import FormCodec, JSONCodec, RawCodec, TextCodec
from restify.exceptions import DecodeError, EncodeError, EndpointDefinitionError


class Person(BaseModel):
    name: str
    age: int
    tags: list[str] = []


class Note(Endpoint, path="notes", method="POST", request_type="text"):
    content: str


class BadForm(Endpoint, path="form", method="POST", request_type="form"):
    nested: dict[str, Any]


def test_encode_query_omits_absent_values_and_never_emits_bare_separator() -> None:
    assert encode_query([]) == ""
    assert encode_query([("scope", None)]) == ""
    assert encode_query({"scope": None, "page": 2}) == "page=2"


def test_encode_query_percent_encodes_keys_and_values() -> None:
    assert encode_query([("q", "a b&c"), ("next/page", "x=y")]) == "q=a%20b%26c&next%2Fpage=x%3Dy"
    assert encode_query([("ids", [1, 2]), ("flag", False)]) == "ids=1&ids=2&flag=false"


def test_encode_query_rejects_nested_values() -> None:
    with pytest.raises(EncodeError):
        _ = encode_query([("filter", {"a": 1})])


def test_json_encoding_keeps_declaration_order() -> None:
    codec = JSONCodec()
    assert codec.encode({"b": 1, "a": [1, 2], "c": None}) == b'{"b":1,"a":[1,2],"c":null}'
    assert codec.encode({}) == b""


def test_json_round_trip_preserves_fields() -> None:
    codec = JSONCodec()
    person = Person(name="George", age=42, tags=["ceo"])
    encoded = codec.encode(person.model_dump(mode="json"))
    assert codec.decode(encoded, Person) == person


def test_json_decode_failure_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as exc:
        _ = JSONCodec().decode(b"{not json", Person)
    assert exc.value.content == b"{not json"
    assert exc.value.target is Person

    with pytest.raises(DecodeError):
        _ = JSONCodec().decode(b'{"name": "x"}', Person)


def test_form_codec_encodes_scalars_and_lists() -> None:
    codec = FormCodec()
    body = codec.encode({"a": "x y", "b": True, "c": None, "d": [1, 2]})
    assert body == b"a=x+y&b=true&d=1&d=2"

    with pytest.raises(EncodeError):
        _ = codec.encode({"nested": {"a": 1}})


def test_form_codec_decodes_into_target() -> None:
    class Token(BaseModel):
        access_token: str
        expires_in: int

    token = FormCodec().decode(b"access_token=abc&expires_in=3600", Token)
    assert token == Token(access_token="abc", expires_in=3600)

    with pytest.raises(DecodeError):
        _ = FormCodec().decode(b"\xff\xfe", dict[str, str])


def test_text_codec_takes_exactly_one_field() -> None:
    codec = TextCodec()
    assert codec.encode({"content": "hello"}) == b"hello"
    assert codec.encode({"count": 3}) == b"3"
    with pytest.raises(EncodeError):
        _ = codec.encode({"a": "1", "b": "2"})

    assert codec.decode("héllo".encode(), str) == "héllo"
    with pytest.raises(DecodeError):
        _ = codec.decode(b"\xff", str)


def test_raw_codec_hands_back_bytes() -> None:
    codec = RawCodec()
    assert codec.decode(b"\x00\x01", bytes) == b"\x00\x01"
    assert codec.decode(b"\x00\x01", Any) == b"\x00\x01"
    with pytest.raises(EncodeError):
        _ = codec.encode({"a": 1})


def test_registry_lookup_and_extension() -> None:
    assert "json" in DEFAULT_CODECS
    assert RequestType.FORM in DEFAULT_CODECS
    assert isinstance(DEFAULT_CODECS.get("JSON"), JSONCodec)

    registry = CodecRegistry()
    with pytest.raises(EndpointDefinitionError, match="Unknown encoding"):
        _ = registry.get("json")

    registry.register("text", TextCodec())
    assert isinstance(registry.get(RequestType.TEXT), TextCodec)


def test_text_endpoint_sends_single_field_as_plain_text() -> None:
    request = Note(content="remember the milk").build_request()
    assert request.body == b"remember the milk"
    assert request.header("content-type") == "text/plain; charset=utf-8"


def test_encode_error_surfaces_before_any_network_activity() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, request=request)

    client = Client("http://api.com", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(EncodeError) as exc:
            _ = BadForm(nested={"a": 1}).execute(client)
    finally:
        client.close()

    assert exc.value.encoding == "form"
    assert calls == []


def test_untagged_fields_may_carry_other_annotated_metadata() -> None:
    class Tagged(Endpoint, path="tagged", method="POST", request_type="form"):
        name: Annotated[str, "display name"]

    assert Tagged(name="n").build_body() == b"name=n"
