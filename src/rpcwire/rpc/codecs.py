"""
Codec dispatch: the two wire encodings and selection by Content-Type.
Message types are protobuf messages; encode/decode entry points come from the protobuf runtime.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from google.protobuf import json_format
from google.protobuf.message import DecodeError, EncodeError

from rpcwire.rpc.errors import ErrorCode, RpcError, internal_error_with, new_error, wrap
from rpcwire.rpc.protocol import Codec
from rpcwire.rpc.schema import ErrorMessage

logger = logging.getLogger("rpcwire.codecs")

PROTOBUF_CONTENT_TYPE = "application/protobuf"
JSON_CONTENT_TYPE = "application/json"

MISSING_REJECT = "reject"
MISSING_JSON = "json"


def media_type(header: str | None) -> str:
    """Content-Type without parameters, lowercased: "application/json; charset=utf-8" -> "application/json"."""
    if not header:
        return ""
    return header.split(";", 1)[0].strip().lower()


class ProtobufCodec:
    """Binary protobuf encoding."""

    name = "protobuf"
    content_type = PROTOBUF_CONTENT_TYPE

    def decode(self, data: bytes, message_type: type[Any]) -> Any:
        try:
            return message_type.FromString(data)
        except DecodeError as e:
            raise wrap(e, ErrorCode.MALFORMED, "the protobuf request could not be decoded") from e

    def encode(self, value: Any) -> bytes:
        try:
            return value.SerializeToString()
        except (AttributeError, TypeError, EncodeError) as e:
            raise internal_error_with(e) from e

    def encode_error(self, error: RpcError) -> bytes:
        msg = ErrorMessage(code=error.code.value, msg=error.msg)
        msg.meta.update(error.meta)
        return msg.SerializeToString()

    def decode_error(self, data: bytes) -> RpcError:
        try:
            msg = ErrorMessage.FromString(data)
        except DecodeError as e:
            raise ValueError("body is not a protobuf error message") from e
        if not msg.code:
            raise ValueError("protobuf error message has no code")
        return RpcError.from_dict({"code": msg.code, "msg": msg.msg, "meta": dict(msg.meta)})

    def __repr__(self) -> str:
        return "ProtobufCodec()"


class JsonCodec:
    """
    JSON encoding via protobuf's canonical JSON mapping.
    emit_defaults: also write fields holding default values. camel_case: lowerCamelCase field names.
    Unknown fields are ignored on decode.
    """

    name = "json"
    content_type = JSON_CONTENT_TYPE

    def __init__(self, *, emit_defaults: bool = True, camel_case: bool = False) -> None:
        self.emit_defaults = emit_defaults
        self.camel_case = camel_case

    def decode(self, data: bytes, message_type: type[Any]) -> Any:
        message = message_type()
        try:
            json_format.Parse(data, message, ignore_unknown_fields=True)
        except (json_format.ParseError, ValueError) as e:
            raise wrap(e, ErrorCode.MALFORMED, "the json request could not be decoded") from e
        return message

    def encode(self, value: Any) -> bytes:
        try:
            data = json_format.MessageToDict(
                value,
                preserving_proto_field_name=not self.camel_case,
                always_print_fields_with_no_presence=self.emit_defaults,
            )
        except (AttributeError, TypeError, ValueError, json_format.Error) as e:
            raise internal_error_with(e) from e
        return json.dumps(data, separators=(",", ":")).encode()

    def encode_error(self, error: RpcError) -> bytes:
        return json.dumps(error.to_dict()).encode()

    def decode_error(self, data: bytes) -> RpcError:
        return RpcError.from_dict(json.loads(data.decode() or "null"))

    def __repr__(self) -> str:
        return f"JsonCodec(emit_defaults={self.emit_defaults}, camel_case={self.camel_case})"


class CodecRegistry:
    """
    The recognized codecs by content type. select() never falls back silently:
    an unrecognized Content-Type is a bad_route error; a missing one follows `missing`.
    """

    def __init__(self, codecs: Iterable[Codec] | None = None, *, missing: str = MISSING_REJECT) -> None:
        if missing not in (MISSING_REJECT, MISSING_JSON):
            raise ValueError(f"missing must be {MISSING_REJECT!r} or {MISSING_JSON!r}, got {missing!r}")
        if codecs is None:
            codecs = (ProtobufCodec(), JsonCodec())
        self._by_type: dict[str, Codec] = {c.content_type: c for c in codecs}
        self._missing = missing

    @property
    def json(self) -> Codec:
        return self._by_type[JSON_CONTENT_TYPE]

    def get(self, content_type: str | None) -> Codec | None:
        return self._by_type.get(media_type(content_type))

    def select(self, content_type: str | None) -> Codec:
        if not content_type or not content_type.strip():
            if self._missing == MISSING_JSON:
                logger.debug("no Content-Type, using json")
                return self.json
            raise new_error(ErrorCode.BAD_ROUTE, 'unexpected Content-Type: ""')
        codec = self.get(content_type)
        if codec is None:
            raise new_error(ErrorCode.BAD_ROUTE, f'unexpected Content-Type: "{content_type}"')
        return codec


_default_registry = CodecRegistry()


def select_codec(content_type: str | None, registry: CodecRegistry | None = None) -> Codec:
    """Codec for a Content-Type header value; raises RpcError(bad_route) when not recognized."""
    return (registry or _default_registry).select(content_type)
