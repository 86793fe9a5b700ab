"""
Infer schema types from python types using reflection. Only types whose shape
is concretely declared can be inferred: dataclasses with annotated fields,
Enum subclasses and the python scalar types. Protobuf messages (static or
dynamic) carry their shape in a descriptor rather than in python annotations,
so they must be translated explicitly with descriptor_to_schema.
"""

# Standard
from enum import Enum
from typing import Annotated, Any, Dict, Union, get_args, get_origin, get_type_hints
import dataclasses
import types

# Third Party
from google.protobuf import message as _message

# First Party
import alog

# Local
from .errors import SchemaMismatchError
from .schema import (
    BoolType,
    BytesType,
    EnumMember,
    EnumType,
    FloatType,
    IntType,
    ListType,
    MapType,
    SchemaType,
    StringType,
    StructField,
    StructType,
)

log = alog.use_channel("SCINF")


## Globals #####################################################################

# Optional[T] and T | None
_UNION_ORIGINS = (Union, getattr(types, "UnionType", Union))

PY_TO_SCHEMA_TYPES = {
    bool: BoolType("Bool"),
    str: StringType("String"),
    bytes: BytesType("Bytes"),
    float: FloatType("Float"),
    int: IntType("Int"),
}


## Interface ###################################################################


def infer_schema(host_type: Any) -> SchemaType:
    """Infer the schema type for the given python type

    Args:
        host_type:  Any
            A dataclass, Enum subclass, scalar type or typing construct

    Returns:
        schema_type:  SchemaType
            The inferred type. Dataclasses become structs named after the class

    Raises:
        SchemaMismatchError if the shape of the type cannot be introspected
    """
    return _SchemaInferrer().infer(host_type)


## Impl ########################################################################


class _SchemaInferrer:
    """Recursive inference that caches structs so that self-referencing
    dataclasses resolve to the same StructType
    """

    def __init__(self):
        self.structs: Dict[type, StructType] = {}

    def infer(self, host_type: Any) -> SchemaType:
        host_type = self._unwrap_annotated(host_type)

        if isinstance(host_type, type) and issubclass(host_type, _message.Message):
            raise SchemaMismatchError(
                f"Cannot infer a schema for protobuf message type {host_type.__name__}: "
                "its fields are described by its DESCRIPTOR, not by python types. "
                "Use descriptor_to_schema to build an explicit schema."
            )

        if host_type in PY_TO_SCHEMA_TYPES:
            return PY_TO_SCHEMA_TYPES[host_type]

        origin = get_origin(host_type)
        args = get_args(host_type)
        if origin is list and len(args) == 1:
            value_type, nullable = self._split_optional(args[0])
            return ListType(self.infer(value_type), value_nullable=nullable)
        if origin is dict and len(args) == 2:
            if self._unwrap_annotated(args[0]) is not str:
                raise SchemaMismatchError(
                    f"Cannot infer a schema for {host_type}: map keys must be str"
                )
            value_type, nullable = self._split_optional(args[1])
            return MapType(
                PY_TO_SCHEMA_TYPES[str], self.infer(value_type), value_nullable=nullable
            )

        if isinstance(host_type, type) and issubclass(host_type, Enum):
            return EnumType(
                host_type.__name__,
                [EnumMember(name) for name in host_type.__members__],
            )

        if dataclasses.is_dataclass(host_type) and isinstance(host_type, type):
            return self._infer_struct(host_type)

        raise SchemaMismatchError(
            f"Cannot infer a schema for {host_type!r}: only dataclasses, enums, "
            "scalars and typed lists/dicts have an introspectable shape"
        )

    def _infer_struct(self, dataclass_: type) -> StructType:
        if dataclass_ in self.structs:
            return self.structs[dataclass_]
        struct_type = StructType(dataclass_.__name__)
        self.structs[dataclass_] = struct_type

        try:
            hints = get_type_hints(dataclass_, include_extras=True)
        except NameError as err:
            raise SchemaMismatchError(
                f"Cannot resolve annotations of {dataclass_.__name__}: {err}"
            ) from err

        for field in dataclasses.fields(dataclass_):
            field_type, optional = self._split_optional(hints[field.name])
            log.debug3(
                "Inferred field %s.%s (optional=%s)",
                dataclass_.__name__,
                field.name,
                optional,
            )
            struct_type.fields.append(
                StructField(field.name, self.infer(field_type), optional=optional)
            )
        return struct_type

    @classmethod
    def _split_optional(cls, host_type: Any):
        """Unwrap Optional[T] into (T, True), anything else into (T, False)"""
        host_type = cls._unwrap_annotated(host_type)
        args = get_args(host_type)
        if get_origin(host_type) in _UNION_ORIGINS and type(None) in args:
            non_none_args = [arg for arg in args if arg is not type(None)]
            if len(non_none_args) != 1:
                raise SchemaMismatchError(
                    f"Cannot infer a schema for union {host_type}"
                )
            return cls._unwrap_annotated(non_none_args[0]), True
        return host_type, False

    @staticmethod
    def _unwrap_annotated(host_type: Any) -> Any:
        while get_origin(host_type) is Annotated:
            host_type = get_args(host_type)[0]
        return host_type
