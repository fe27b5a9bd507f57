"""
Protobuf schema helpers: build message classes from a FileDescriptorProto.
Generated *_pb2 modules are the usual source of message types; this covers schemas assembled at runtime
and the wire message used for errors in the binary encoding.
"""
from __future__ import annotations

from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

FieldProto = descriptor_pb2.FieldDescriptorProto


def add_file(
    file_proto: descriptor_pb2.FileDescriptorProto,
    pool: descriptor_pool.DescriptorPool | None = None,
) -> dict[str, Any]:
    """
    Register a file in `pool` (a private pool by default) and return its top-level
    message classes by short name, plus its services under their short names.
    """
    pool = pool if pool is not None else descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    file_desc = pool.FindFileByName(file_proto.name)
    out: dict[str, Any] = {}
    for name, msg_desc in file_desc.message_types_by_name.items():
        out[name] = message_factory.GetMessageClass(msg_desc)
    for name, svc_desc in file_desc.services_by_name.items():
        out[name] = svc_desc
    return out


def scalar_field(name: str, number: int, type_: int) -> FieldProto:
    """Optional scalar field (proto3 implicit presence)."""
    return FieldProto(name=name, number=number, type=type_, label=FieldProto.LABEL_OPTIONAL)


def string_map_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    package: str,
) -> None:
    """Add a map<string, string> field `name` to `message` (with its synthetic entry type)."""
    entry_name = "".join(part.capitalize() for part in name.split("_")) + "Entry"
    entry = message.nested_type.add(name=entry_name)
    entry.options.map_entry = True
    entry.field.append(scalar_field("key", 1, FieldProto.TYPE_STRING))
    entry.field.append(scalar_field("value", 2, FieldProto.TYPE_STRING))
    prefix = f".{package}." if package else "."
    message.field.append(
        FieldProto(
            name=name,
            number=number,
            type=FieldProto.TYPE_MESSAGE,
            label=FieldProto.LABEL_REPEATED,
            type_name=f"{prefix}{message.name}.{entry_name}",
        )
    )


def _error_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="rpcwire/error.proto",
        package="rpcwire",
        syntax="proto3",
    )
    msg = file_proto.message_type.add(name="Error")
    msg.field.append(scalar_field("code", 1, FieldProto.TYPE_STRING))
    msg.field.append(scalar_field("msg", 2, FieldProto.TYPE_STRING))
    string_map_field(msg, "meta", 3, "rpcwire")
    return file_proto


# message Error { string code = 1; string msg = 2; map<string, string> meta = 3; }
ErrorMessage = add_file(_error_file())["Error"]
