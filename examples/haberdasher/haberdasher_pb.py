"""
Message classes and service descriptor for haberdasher.proto, assembled at import time
(the same types protoc would generate).
"""
from google.protobuf import descriptor_pb2

from rpcwire.rpc.schema import FieldProto, add_file, scalar_field


def _file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="example/haberdasher.proto",
        package="example",
        syntax="proto3",
    )
    size = file_proto.message_type.add(name="Size")
    size.field.append(scalar_field("inches", 1, FieldProto.TYPE_INT32))

    hat = file_proto.message_type.add(name="Hat")
    hat.field.append(scalar_field("inches", 1, FieldProto.TYPE_INT32))
    hat.field.append(scalar_field("color", 2, FieldProto.TYPE_STRING))
    hat.field.append(scalar_field("name", 3, FieldProto.TYPE_STRING))

    service = file_proto.service.add(name="Haberdasher")
    service.method.add(name="MakeHat", input_type=".example.Size", output_type=".example.Hat")
    return file_proto


_types = add_file(_file())

Size = _types["Size"]
Hat = _types["Hat"]
HABERDASHER = _types["Haberdasher"]
