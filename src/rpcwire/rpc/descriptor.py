"""
ServiceDescriptor and MethodBinding: the fixed shape the server dispatches on.
Bindings come from generated code, from bind_method(), or from a protobuf service descriptor.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from google.protobuf import message_factory

from rpcwire.core.context import RequestContext
from rpcwire.rpc.errors import ErrorCode, RpcError, internal_error
from rpcwire.rpc.protocol import Codec


@dataclass(frozen=True)
class MethodBinding:
    """
    One RPC method: decode(bytes, codec) -> request, invoke(request, ctx) -> response (or awaitable),
    encode(response, codec) -> bytes.
    """

    name: str
    decode: Callable[[bytes, Codec], Any]
    invoke: Callable[[Any, RequestContext], Any]
    encode: Callable[[Any, Codec], bytes]
    input_type: type | None = None
    output_type: type | None = None


def bind_method(
    name: str,
    input_type: type,
    output_type: type,
    handler: Callable[[Any, RequestContext], Any],
) -> MethodBinding:
    """Binding for handler(request, ctx) -> response with protobuf input/output message types."""

    def decode(data: bytes, codec: Codec) -> Any:
        return codec.decode(data, input_type)

    def invoke(request: Any, ctx: RequestContext) -> Any:
        return handler(request, ctx)

    def encode(value: Any, codec: Codec) -> bytes:
        if value is None:
            raise internal_error(
                f"received a None {output_type.__name__} while calling {name}. None responses are not supported"
            )
        if not isinstance(value, output_type):
            raise internal_error(
                f"{name} returned {type(value).__name__}, expected {output_type.__name__}"
            )
        return codec.encode(value)

    return MethodBinding(name, decode, invoke, encode, input_type, output_type)


def snake_case(name: str) -> str:
    """MakeHat -> make_hat."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _unimplemented(service: str, method: str) -> Callable[[Any, RequestContext], Any]:
    def handler(request: Any, ctx: RequestContext) -> Any:
        raise RpcError(ErrorCode.UNIMPLEMENTED, f"{service}.{method} is not implemented")

    return handler


@dataclass(frozen=True)
class ServiceDescriptor:
    """
    Service name (and protobuf package) plus its methods in declaration order.
    Read-only after construction; one instance is shared by all requests.
    """

    name: str
    methods: Mapping[str, MethodBinding] = field(default_factory=dict)
    package: str = ""

    def __post_init__(self) -> None:
        methods = dict(self.methods)
        for key, binding in methods.items():
            if key != binding.name:
                raise ValueError(f"method key {key!r} does not match binding name {binding.name!r}")
        object.__setattr__(self, "methods", MappingProxyType(methods))

    @property
    def full_name(self) -> str:
        """Dotted name used in the URL path, e.g. example.Haberdasher."""
        return f"{self.package}.{self.name}" if self.package else self.name

    def method(self, name: str) -> MethodBinding | None:
        return self.methods.get(name)

    @classmethod
    def build(cls, package: str, name: str, bindings: Iterable[MethodBinding]) -> ServiceDescriptor:
        methods: dict[str, MethodBinding] = {}
        for binding in bindings:
            if binding.name in methods:
                raise ValueError(f"duplicate method {binding.name!r} in service {name!r}")
            methods[binding.name] = binding
        return cls(name=name, methods=methods, package=package)

    @classmethod
    def from_proto(cls, service: Any, impl: Any) -> ServiceDescriptor:
        """
        Descriptor for a protobuf ServiceDescriptor served by `impl`.
        RPC MakeHat is served by impl.make_hat(request, ctx) (or impl.MakeHat); missing methods answer unimplemented.
        """
        bindings = []
        for method in service.methods:
            handler = getattr(impl, snake_case(method.name), None) or getattr(impl, method.name, None)
            if not callable(handler):
                handler = _unimplemented(service.full_name, method.name)
            bindings.append(
                bind_method(
                    method.name,
                    message_factory.GetMessageClass(method.input_type),
                    message_factory.GetMessageClass(method.output_type),
                    handler,
                )
            )
        return cls.build(service.file.package, service.name, bindings)
