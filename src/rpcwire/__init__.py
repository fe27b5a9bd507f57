"""
rpcwire: async RPC over plain HTTP with protobuf and JSON encodings.
Servers are built from a ServiceDescriptor and composed into an Application via app.register(module).
"""
from rpcwire.core import Application, Config, RequestContext, ServerConfig
from rpcwire.rpc import (
    Client,
    ErrorCode,
    JsonClient,
    ProtobufClient,
    RpcError,
    RpcModule,
    Server,
    ServerHooks,
    ServiceDescriptor,
    bind_method,
    new_server,
)

__version__ = "0.3.0"

__all__ = [
    "Application",
    "Client",
    "Config",
    "ErrorCode",
    "JsonClient",
    "ProtobufClient",
    "RequestContext",
    "RpcError",
    "RpcModule",
    "Server",
    "ServerConfig",
    "ServerHooks",
    "ServiceDescriptor",
    "bind_method",
    "new_server",
]
