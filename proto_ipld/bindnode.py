"""
This module binds plain python values to schema types, producing read-only
Node views over the original value. Nothing is copied: a Node keeps a
reference to the host value and reads through it on access.

Supported host values:
* dataclasses and plain objects (fields read as attributes)
* mappings (fields read as keys)
* protobuf messages (fields read through the message descriptor, honoring
  field presence)

A struct field named `Name` is looked up on the host as `Name` first and then
as its snake_case form `name`.

Example:

```
type_system = load_schema('''
    type Person struct {
        Name    String
        Age     optional Int
    }
''')
node = wrap(Person(name="Michael"), type_system.type_by_name("Person"))
dagjson.encode(node.representation(), sys.stdout)
```
"""

# Standard
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterator, List, Optional, Tuple

# Third Party
from google.protobuf import message as _message

# First Party
import alog

# Local
from .errors import NotFoundError, SchemaMismatchError
from .schema import (
    BoolType,
    BytesType,
    EnumMember,
    EnumType,
    FloatType,
    IntType,
    Kind,
    ListType,
    MapType,
    SchemaType,
    StringType,
    StructField,
    StructType,
)
from .schema_infer import infer_schema
from .utils import to_snake

log = alog.use_channel("BNODE")


## Interface ###################################################################


def wrap(value: Any, schema_type: Optional[SchemaType] = None) -> "Node":
    """Bind the given value to a schema type

    Args:
        value:  Any
            The host value to view through the schema
        schema_type:  Optional[SchemaType]
            The type to bind to. If not given, the type is inferred from the
            python type of the value.

    Returns:
        node:  Node
            A typed view over the value

    Raises:
        SchemaMismatchError if the value does not conform to the type, or if no
        type is given and none can be inferred
    """
    if schema_type is None:
        log.debug2("No schema type given, inferring from %s", type(value).__name__)
        schema_type = infer_schema(type(value))
    log.debug2("Binding %s to %s", type(value).__name__, schema_type.display_name)
    _validate(value, schema_type, "$")
    return Node(value, schema_type)


class Node:
    """A typed node: a host value viewed through a schema type"""

    is_absent = False
    is_null = False

    def __init__(self, host: Any, schema_type: SchemaType):
        self._host = host
        self.schema_type = schema_type

    @property
    def kind(self) -> Kind:
        return self.schema_type.kind

    def unwrap(self) -> Any:
        """Get the bound host value"""
        return self._host

    def representation(self) -> "RepresentationNode":
        """Get the representation view of this node"""
        return RepresentationNode(self)

    ## Maps ##

    def lookup(self, key: str) -> "Node":
        if isinstance(self.schema_type, StructType):
            field = self.schema_type.field(key)
            if field is None:
                raise NotFoundError(
                    f"Struct {self.schema_type.display_name} has no field {key}"
                )
            return self._field_node(field)
        if isinstance(self.schema_type, MapType):
            if key not in self._host.keys():
                raise NotFoundError(f"Map has no key {key}")
            return _child(
                self._host[key], self.schema_type.value_type
            )
        raise SchemaMismatchError(f"Cannot look up a key on a {self.kind.value} node")

    def keys(self) -> List[str]:
        if isinstance(self.schema_type, StructType):
            return [field.name for field in self.schema_type.fields]
        if isinstance(self.schema_type, MapType):
            return list(self._host.keys())
        raise SchemaMismatchError(f"A {self.kind.value} node has no keys")

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate (key, node) pairs. Absent struct fields are included as
        ABSENT.
        """
        if isinstance(self.schema_type, StructType):
            for field in self.schema_type.fields:
                yield field.name, self._field_node(field)
        elif isinstance(self.schema_type, MapType):
            for key in self._host.keys():
                yield key, _child(self._host[key], self.schema_type.value_type)
        else:
            raise SchemaMismatchError(f"A {self.kind.value} node has no items")

    ## Lists ##

    def lookup_index(self, index: int) -> "Node":
        if not isinstance(self.schema_type, ListType):
            raise SchemaMismatchError(
                f"Cannot look up an index on a {self.kind.value} node"
            )
        if not 0 <= index < len(self._host):
            raise NotFoundError(f"List index {index} out of range")
        return _child(self._host[index], self.schema_type.value_type)

    def elements(self) -> Iterator[Any]:
        if not isinstance(self.schema_type, ListType):
            raise SchemaMismatchError(f"A {self.kind.value} node has no elements")
        for value in self._host:
            yield _child(value, self.schema_type.value_type)

    def length(self) -> int:
        if isinstance(self.schema_type, StructType):
            return len(self.schema_type.fields)
        if isinstance(self.schema_type, (ListType, MapType)):
            return len(self._host)
        return -1

    ## Scalars ##

    def as_bool(self) -> bool:
        return self._as_kind(Kind.BOOL)

    def as_int(self) -> int:
        return self._as_kind(Kind.INT)

    def as_float(self) -> float:
        return self._as_kind(Kind.FLOAT)

    def as_string(self) -> str:
        return self._as_kind(Kind.STRING)

    def as_bytes(self) -> bytes:
        return self._as_kind(Kind.BYTES)

    def as_value(self) -> Any:
        """Get the python scalar for a scalar node. Enum nodes give the member
        name.
        """
        if isinstance(self.schema_type, EnumType):
            return _enum_member(self._host, self.schema_type, "$").name
        converter = _SCALAR_CONVERTERS.get(type(self.schema_type))
        if converter is None:
            raise SchemaMismatchError(f"A {self.kind.value} node is not a scalar")
        return converter(self._host)

    ## Implementation Details ##

    def _as_kind(self, kind: Kind) -> Any:
        if self.kind != kind:
            raise SchemaMismatchError(
                f"Cannot read a {self.kind.value} node as {kind.value}"
            )
        return self.as_value()

    def _field_node(self, field: StructField):
        present, value = _read_field(self._host, field)
        if not present or (value is None and field.optional):
            return ABSENT
        if value is None:
            return NULL
        return Node(value, field.type)

    def __repr__(self) -> str:
        return f"Node({self.schema_type.display_name}, {self._host!r})"


class RepresentationNode:
    """The representation view of a typed node: the data model shape that a
    codec serializes
    """

    is_absent = False
    is_null = False

    def __init__(self, node: Node):
        self._node = node
        self.schema_type = node.schema_type

    @property
    def kind(self) -> Kind:
        return self.schema_type.representation_kind

    def representation(self) -> "RepresentationNode":
        return self

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate (key, node) pairs. Absent struct fields are omitted."""
        if isinstance(self.schema_type, StructType):
            if self.schema_type.representation != "map":
                raise SchemaMismatchError("Tuple-represented structs have no items")
            for field in self.schema_type.fields:
                child = self._node._field_node(field)
                if not child.is_absent:
                    yield field.name, child.representation()
        else:
            for key, child in self._node.items():
                yield key, child.representation()

    def elements(self) -> Iterator[Any]:
        if isinstance(self.schema_type, StructType):
            if self.schema_type.representation != "tuple":
                raise SchemaMismatchError("Map-represented structs have no elements")
            for field in self.schema_type.fields:
                yield self._node._field_node(field).representation()
        else:
            for child in self._node.elements():
                yield child.representation()

    def lookup(self, key: str) -> Any:
        for item_key, child in self.items():
            if item_key == key:
                return child
        raise NotFoundError(f"Representation has no key {key}")

    def length(self) -> int:
        if self.kind == Kind.MAP:
            return sum(1 for _ in self.items())
        return self._node.length()

    def as_value(self) -> Any:
        if isinstance(self.schema_type, EnumType):
            member = _enum_member(self._node.unwrap(), self.schema_type, "$")
            return self.schema_type.representation_of(member)
        return self._node.as_value()

    def __repr__(self) -> str:
        return f"RepresentationNode({self.schema_type.display_name})"


class _NullNode:
    """Null and absent values. These are their own representation."""

    kind = Kind.NULL
    is_null = True

    def __init__(self, is_absent: bool):
        self.is_absent = is_absent

    def representation(self) -> "_NullNode":
        return self

    def as_value(self) -> None:
        return None

    def __repr__(self) -> str:
        return "ABSENT" if self.is_absent else "NULL"


NULL = _NullNode(is_absent=False)
ABSENT = _NullNode(is_absent=True)


## Implementation Details ######################################################

_SCALAR_VALIDATORS = {
    StringType: lambda x: isinstance(x, str),
    IntType: lambda x: isinstance(x, int) and not isinstance(x, bool),
    FloatType: lambda x: isinstance(x, (int, float)) and not isinstance(x, bool),
    BoolType: lambda x: isinstance(x, bool),
    BytesType: lambda x: isinstance(x, (bytes, bytearray, memoryview)),
}

_SCALAR_CONVERTERS = {
    StringType: str,
    IntType: int,
    FloatType: float,
    BoolType: bool,
    BytesType: bytes,
}


def _child(value: Any, schema_type: SchemaType):
    if value is None:
        return NULL
    return Node(value, schema_type)


def _is_mapping(value: Any) -> bool:
    # Protobuf map fields are not registered as Mappings
    return isinstance(value, Mapping) or (
        hasattr(value, "keys") and hasattr(value, "__getitem__")
    )


def _is_list_like(value: Any) -> bool:
    return (
        not isinstance(value, (str, bytes, bytearray))
        and not _is_mapping(value)
        and hasattr(value, "__len__")
        and hasattr(value, "__getitem__")
    )


def _host_names(name: str) -> List[str]:
    snake = to_snake(name)
    return [name] if snake == name else [name, snake]


def _read_field(host: Any, field: StructField) -> Tuple[bool, Any]:
    """Read a struct field from the host, returning (present, value)"""
    if isinstance(host, _message.Message):
        return _read_message_field(host, field)
    for name in _host_names(field.name):
        if isinstance(host, Mapping):
            if name in host:
                return True, host[name]
        elif hasattr(host, name):
            return True, getattr(host, name)
    return False, None


def _read_message_field(message: _message.Message, field: StructField):
    fields_by_name = message.DESCRIPTOR.fields_by_name
    for name in _host_names(field.name):
        if name not in fields_by_name:
            continue
        field_descriptor = fields_by_name[name]
        if field_descriptor.has_presence and not message.HasField(name):
            return False, None
        return True, getattr(message, name)
    return False, None


def _enum_member(host: Any, enum_type: EnumType, path: str) -> EnumMember:
    member = None
    if isinstance(host, Enum):
        member = enum_type.member(host.name)
    elif isinstance(host, str):
        member = enum_type.member(host)
    elif isinstance(host, int) and not isinstance(host, bool):
        member = enum_type.member_by_number(host)
        if member is None and enum_type.representation == "int":
            matches = [m for m in enum_type.members if m.repr_value == str(host)]
            member = matches[0] if matches else None
    if member is None:
        raise SchemaMismatchError(
            f"Value {host!r} at {path} is not a member of enum {enum_type.display_name}"
        )
    return member


def _validate(host: Any, schema_type: SchemaType, path: str):
    """Recursively check that the host value fits the schema type"""
    if isinstance(schema_type, StructType):
        if isinstance(host, (str, bytes, int, float)) or _is_list_like(host):
            raise SchemaMismatchError(
                f"Expected struct {schema_type.display_name} at {path}, got {type(host).__name__}"
            )
        for field in schema_type.fields:
            field_path = f"{path}.{field.name}"
            present, value = _read_field(host, field)
            if not present and not field.optional:
                raise SchemaMismatchError(f"Missing required field {field_path}")
            if value is None:
                if present and not (field.optional or field.nullable):
                    raise SchemaMismatchError(
                        f"Field {field_path} is neither optional nor nullable but is None"
                    )
                continue
            _validate(value, field.type, field_path)

    elif isinstance(schema_type, ListType):
        if not _is_list_like(host):
            raise SchemaMismatchError(
                f"Expected list {schema_type.display_name} at {path}, got {type(host).__name__}"
            )
        for index, value in enumerate(host):
            _validate_element(
                value, schema_type.value_type, schema_type.value_nullable, f"{path}[{index}]"
            )

    elif isinstance(schema_type, MapType):
        if not _is_mapping(host):
            raise SchemaMismatchError(
                f"Expected map {schema_type.display_name} at {path}, got {type(host).__name__}"
            )
        for key in host.keys():
            if not isinstance(key, str):
                raise SchemaMismatchError(f"Map key {key!r} at {path} is not a string")
            _validate_element(
                host[key], schema_type.value_type, schema_type.value_nullable, f"{path}.{key}"
            )

    elif isinstance(schema_type, EnumType):
        _enum_member(host, schema_type, path)

    else:
        validator = _SCALAR_VALIDATORS.get(type(schema_type))
        if validator is None:
            raise SchemaMismatchError(f"Unsupported schema type {schema_type!r}")
        if not validator(host):
            raise SchemaMismatchError(
                f"Expected {schema_type.display_name} at {path}, got {type(host).__name__}"
            )


def _validate_element(value: Any, schema_type: SchemaType, nullable: bool, path: str):
    if value is None:
        if not nullable:
            raise SchemaMismatchError(f"Value at {path} is None but not nullable")
        return
    _validate(value, schema_type, path)
