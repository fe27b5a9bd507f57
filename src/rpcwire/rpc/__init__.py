from rpcwire.rpc.client import Client, JsonClient, ProtobufClient, ServiceClient
from rpcwire.rpc.codecs import (
    JSON_CONTENT_TYPE,
    PROTOBUF_CONTENT_TYPE,
    CodecRegistry,
    JsonCodec,
    ProtobufCodec,
    select_codec,
)
from rpcwire.rpc.descriptor import MethodBinding, ServiceDescriptor, bind_method
from rpcwire.rpc.errors import (
    ErrorCode,
    RpcError,
    error_from_intermediary,
    internal_error,
    internal_error_with,
    invalid_argument_error,
    is_valid_error_code,
    new_error,
    not_found_error,
    required_argument_error,
    status_for,
    wrap,
)
from rpcwire.rpc.hooks import ClientHooks, HookChain, ServerHooks, chain_hooks
from rpcwire.rpc.protocol import Codec, ContextSource, RpcHandler
from rpcwire.rpc.rpc_module import RpcModule
from rpcwire.rpc.server import Server, new_server

__all__ = [
    "Client",
    "ClientHooks",
    "Codec",
    "CodecRegistry",
    "ContextSource",
    "ErrorCode",
    "HookChain",
    "JSON_CONTENT_TYPE",
    "JsonClient",
    "JsonCodec",
    "MethodBinding",
    "PROTOBUF_CONTENT_TYPE",
    "ProtobufClient",
    "ProtobufCodec",
    "RpcError",
    "RpcHandler",
    "RpcModule",
    "Server",
    "ServerHooks",
    "ServiceClient",
    "ServiceDescriptor",
    "bind_method",
    "chain_hooks",
    "error_from_intermediary",
    "internal_error",
    "internal_error_with",
    "invalid_argument_error",
    "is_valid_error_code",
    "new_error",
    "new_server",
    "not_found_error",
    "required_argument_error",
    "select_codec",
    "status_for",
    "wrap",
]
