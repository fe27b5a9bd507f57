import json

import pytest
from haberdasher.haberdasher_pb import HABERDASHER, Hat, Size

from rpcwire.core.context import RequestContext
from rpcwire.rpc.codecs import JsonCodec
from rpcwire.rpc.descriptor import MethodBinding, ServiceDescriptor, bind_method, snake_case
from rpcwire.rpc.errors import ErrorCode, RpcError


def test_from_proto(descriptor):
    assert descriptor.name == "Haberdasher"
    assert descriptor.package == "example"
    assert descriptor.full_name == "example.Haberdasher"
    assert list(descriptor.methods) == ["MakeHat"]
    binding = descriptor.method("MakeHat")
    assert binding.input_type is Size
    assert binding.output_type is Hat
    assert descriptor.method("MakeShoe") is None


def test_from_proto_accepts_method_named_handlers():
    class Impl:
        def MakeHat(self, size, ctx):
            return Hat(inches=size.inches * 2)

    binding = ServiceDescriptor.from_proto(HABERDASHER, Impl()).method("MakeHat")
    assert binding.invoke(Size(inches=3), RequestContext()).inches == 6


def test_missing_handler_is_unimplemented():
    binding = ServiceDescriptor.from_proto(HABERDASHER, object()).method("MakeHat")
    with pytest.raises(RpcError) as exc:
        binding.invoke(Size(), RequestContext())
    assert exc.value.code is ErrorCode.UNIMPLEMENTED
    assert exc.value.msg == "example.Haberdasher.MakeHat is not implemented"


def test_methods_are_read_only(descriptor):
    with pytest.raises(TypeError):
        descriptor.methods["MakeShoe"] = descriptor.method("MakeHat")
    with pytest.raises(AttributeError):
        descriptor.name = "Shoemaker"


def test_build_rejects_duplicates():
    binding = bind_method("MakeHat", Size, Hat, lambda size, ctx: Hat())
    with pytest.raises(ValueError):
        ServiceDescriptor.build("example", "Haberdasher", [binding, binding])


def test_method_keys_must_match_binding_names():
    binding = bind_method("MakeHat", Size, Hat, lambda size, ctx: Hat())
    with pytest.raises(ValueError):
        ServiceDescriptor("Haberdasher", {"MakeCap": binding})


def test_bound_method_codec_round_trip():
    binding = bind_method("MakeHat", Size, Hat, lambda size, ctx: Hat(inches=size.inches))
    codec = JsonCodec()
    size = binding.decode(b'{"inches": 8}', codec)
    hat = binding.invoke(size, RequestContext())
    assert json.loads(binding.encode(hat, codec)) == {"inches": 8, "color": "", "name": ""}


@pytest.mark.parametrize("value", [None, Size(inches=1)])
def test_encode_rejects_wrong_responses(value):
    binding = bind_method("MakeHat", Size, Hat, lambda size, ctx: value)
    with pytest.raises(RpcError) as exc:
        binding.encode(value, JsonCodec())
    assert exc.value.code is ErrorCode.INTERNAL


def test_handwritten_binding():
    binding = MethodBinding(
        "Echo",
        decode=lambda data, codec: data,
        invoke=lambda request, ctx: request,
        encode=lambda value, codec: value,
    )
    service = ServiceDescriptor.build("", "Echo", [binding])
    assert service.full_name == "Echo"
    assert service.method("Echo") is binding


@pytest.mark.parametrize(
    "name,expected",
    [("MakeHat", "make_hat"), ("Get", "get"), ("listAllHats", "list_all_hats")],
)
def test_snake_case(name, expected):
    assert snake_case(name) == expected
