"""
This module translates protobuf message descriptors into schema types so that
protobuf messages, including dynamic ones, can be bound with an explicit
schema. Messages become structs, enums become enums, repeated fields become
lists and map fields become maps. Fields that track presence become optional
struct fields, except proto2 required fields.
"""

# Standard
from typing import Dict, Union

# Third Party
from google.protobuf import descriptor as _descriptor

# First Party
import alog

# Local
from .errors import SchemaMismatchError
from .schema import (
    EnumMember,
    EnumType,
    ListType,
    MapType,
    SchemaType,
    StructField,
    StructType,
    TypeSystem,
)

log = alog.use_channel("D2SCH")

_FD = _descriptor.FieldDescriptor

## Globals #####################################################################

PROTO_TO_SCHEMA_TYPES = {
    _FD.TYPE_STRING: "String",
    _FD.TYPE_BYTES: "Bytes",
    _FD.TYPE_BOOL: "Bool",
    _FD.TYPE_DOUBLE: "Float",
    _FD.TYPE_FLOAT: "Float",
    _FD.TYPE_INT32: "Int",
    _FD.TYPE_INT64: "Int",
    _FD.TYPE_UINT32: "Int",
    _FD.TYPE_UINT64: "Int",
    _FD.TYPE_SINT32: "Int",
    _FD.TYPE_SINT64: "Int",
    _FD.TYPE_FIXED32: "Int",
    _FD.TYPE_FIXED64: "Int",
    _FD.TYPE_SFIXED32: "Int",
    _FD.TYPE_SFIXED64: "Int",
}


## Interface ###################################################################


def descriptor_to_schema(descriptor: _descriptor.Descriptor) -> TypeSystem:
    """Create a type system from the given message descriptor

    Args:
        descriptor:  descriptor.Descriptor
            The message descriptor to translate

    Returns:
        type_system:  TypeSystem
            A type system holding a struct for the message and every message
            and enum it references. The struct for the given descriptor is
            the type system's root.
    """
    return _DescriptorTranslator(descriptor).type_system


## Impl ########################################################################


class _DescriptorTranslator:
    """Recursive translation that reuses already translated types so that
    recursive messages refer back to the same struct
    """

    def __init__(self, descriptor: _descriptor.Descriptor):
        self.package = descriptor.file.package
        self.type_system = TypeSystem()
        self.translated: Dict[str, SchemaType] = {}
        self.type_system.root = self._translate_message(descriptor)

    def _schema_name(
        self, descriptor: Union[_descriptor.Descriptor, _descriptor.EnumDescriptor]
    ) -> str:
        """Nested types are flattened with underscores (Outer.Inner ->
        Outer_Inner). Types from other packages keep their package as a prefix.
        """
        full_name = descriptor.full_name
        if self.package and full_name.startswith(self.package + "."):
            full_name = full_name[len(self.package) + 1 :]
        return full_name.replace(".", "_")

    def _translate_message(self, descriptor: _descriptor.Descriptor) -> StructType:
        if descriptor.full_name in self.translated:
            return self.translated[descriptor.full_name]
        name = self._schema_name(descriptor)
        log.debug2("Translating message %s to struct %s", descriptor.full_name, name)
        struct_type = StructType(name)
        self.translated[descriptor.full_name] = struct_type
        self.type_system.add(name, struct_type)
        for field in descriptor.fields:
            struct_type.fields.append(
                StructField(
                    field.name,
                    self._translate_field_type(field),
                    optional=field.has_presence and not field.is_required,
                )
            )
        return struct_type

    def _translate_enum(self, descriptor: _descriptor.EnumDescriptor) -> EnumType:
        if descriptor.full_name in self.translated:
            return self.translated[descriptor.full_name]
        name = self._schema_name(descriptor)
        log.debug2("Translating enum %s to %s", descriptor.full_name, name)
        enum_type = EnumType(
            name,
            [EnumMember(value.name, number=value.number) for value in descriptor.values],
        )
        self.translated[descriptor.full_name] = enum_type
        self.type_system.add(name, enum_type)
        return enum_type

    def _translate_field_type(self, field: _descriptor.FieldDescriptor) -> SchemaType:
        if field.type == _FD.TYPE_MESSAGE and field.message_type.GetOptions().map_entry:
            key_field = field.message_type.fields_by_name["key"]
            value_field = field.message_type.fields_by_name["value"]
            if key_field.type != _FD.TYPE_STRING:
                raise SchemaMismatchError(
                    f"Map field {field.full_name} has non-string keys, which schema maps do not support"
                )
            return MapType(
                self.type_system.type_by_name("String"),
                self._translate_single_type(value_field),
            )
        single_type = self._translate_single_type(field)
        if field.is_repeated:
            return ListType(single_type)
        return single_type

    def _translate_single_type(self, field: _descriptor.FieldDescriptor) -> SchemaType:
        if field.type in (_FD.TYPE_MESSAGE, _FD.TYPE_GROUP):
            return self._translate_message(field.message_type)
        if field.type == _FD.TYPE_ENUM:
            return self._translate_enum(field.enum_type)
        return self.type_system.type_by_name(PROTO_TO_SCHEMA_TYPES[field.type])
