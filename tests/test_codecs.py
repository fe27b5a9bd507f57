import json

import pytest
from haberdasher.haberdasher_pb import Hat, Size

from rpcwire.rpc.codecs import (
    JSON_CONTENT_TYPE,
    PROTOBUF_CONTENT_TYPE,
    CodecRegistry,
    JsonCodec,
    ProtobufCodec,
    media_type,
    select_codec,
)
from rpcwire.rpc.errors import ErrorCode, RpcError, new_error


def test_media_type_strips_parameters():
    assert media_type("application/json; charset=utf-8") == "application/json"
    assert media_type("  Application/Protobuf ") == "application/protobuf"
    assert media_type(None) == ""


@pytest.mark.parametrize(
    "header,name",
    [
        ("application/json", "json"),
        ("application/json; charset=utf-8", "json"),
        ("application/protobuf", "protobuf"),
    ],
)
def test_select_codec(header, name):
    assert select_codec(header).name == name


def test_select_rejects_unknown_content_type():
    with pytest.raises(RpcError) as exc:
        select_codec("text/plain")
    assert exc.value.code is ErrorCode.BAD_ROUTE
    assert exc.value.msg == 'unexpected Content-Type: "text/plain"'


def test_missing_content_type_is_rejected_by_default():
    with pytest.raises(RpcError) as exc:
        CodecRegistry().select(None)
    assert exc.value.code is ErrorCode.BAD_ROUTE
    assert exc.value.msg == 'unexpected Content-Type: ""'


def test_missing_content_type_can_default_to_json():
    registry = CodecRegistry(missing="json")
    assert registry.select(None).content_type == JSON_CONTENT_TYPE
    assert registry.select("   ").content_type == JSON_CONTENT_TYPE
    with pytest.raises(RpcError):
        registry.select("text/plain")


def test_registry_rejects_unknown_missing_policy():
    with pytest.raises(ValueError):
        CodecRegistry(missing="protobuf")


def test_json_decode_and_encode():
    codec = JsonCodec()
    size = codec.decode(b'{"inches": 12}', Size)
    assert size.inches == 12
    body = codec.encode(Hat(inches=12, color="red", name="derby"))
    assert json.loads(body) == {"inches": 12, "color": "red", "name": "derby"}


@pytest.mark.parametrize("codec", [JsonCodec(), JsonCodec(camel_case=True)], ids=["proto_names", "camel_case"])
def test_json_hat_survives_a_round_trip(codec):
    hat = Hat(inches=12, color="red", name="top hat")
    assert codec.decode(codec.encode(hat), Hat) == hat


def test_json_emits_defaults_unless_disabled():
    assert json.loads(JsonCodec().encode(Hat(inches=3))) == {"inches": 3, "color": "", "name": ""}
    assert json.loads(JsonCodec(emit_defaults=False).encode(Hat(inches=3))) == {"inches": 3}


def test_json_ignores_unknown_fields():
    size = JsonCodec().decode(b'{"inches": 7, "brim": "wide"}', Size)
    assert size.inches == 7


@pytest.mark.parametrize("body", [b"{not json", b'{"inches": "twelve"}', b"\xff\xfe"])
def test_json_malformed_request(body):
    with pytest.raises(RpcError) as exc:
        JsonCodec().decode(body, Size)
    assert exc.value.code is ErrorCode.MALFORMED
    assert exc.value.msg == "the json request could not be decoded"
    assert exc.value.cause is not None


def test_protobuf_decode_and_encode():
    codec = ProtobufCodec()
    hat = Hat(inches=12, color="blue", name="bowler")
    assert codec.decode(codec.encode(hat), Hat) == hat
    assert codec.decode(b"", Size).inches == 0


def test_protobuf_truncated_request_is_malformed():
    with pytest.raises(RpcError) as exc:
        ProtobufCodec().decode(b"\x08", Size)
    assert exc.value.code is ErrorCode.MALFORMED
    assert exc.value.msg == "the protobuf request could not be decoded"


@pytest.mark.parametrize("codec", [ProtobufCodec(), JsonCodec()])
def test_encoding_a_non_message_is_internal(codec):
    with pytest.raises(RpcError) as exc:
        codec.encode(object())
    assert exc.value.code is ErrorCode.INTERNAL


def test_json_error_body():
    err = new_error(ErrorCode.NOT_FOUND, "no hat", {"id": "7"})
    body = JsonCodec().encode_error(err)
    assert json.loads(body) == {"code": "not_found", "msg": "no hat", "meta": {"id": "7"}}
    assert JsonCodec().decode_error(body) == err


def test_protobuf_error_body():
    codec = ProtobufCodec()
    err = new_error(ErrorCode.RESOURCE_EXHAUSTED, "slow down", {"retry_after": "5"})
    assert codec.decode_error(codec.encode_error(err)) == err


def test_decode_error_rejects_foreign_bodies():
    with pytest.raises(ValueError):
        JsonCodec().decode_error(b"<html>Bad Gateway</html>")
    with pytest.raises(ValueError):
        ProtobufCodec().decode_error(b"")


def test_codec_content_types():
    assert ProtobufCodec.content_type == PROTOBUF_CONTENT_TYPE
    assert JsonCodec.content_type == JSON_CONTENT_TYPE
