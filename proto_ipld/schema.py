"""
In-memory representation of IPLD schema types.

A TypeSystem is an ordered collection of named types. Types are plain python
objects that reference each other directly, so recursive structures are
expressed by sharing the same StructType instance.

Reference: https://ipld.io/docs/schemas/
"""

# Standard
from enum import Enum
from typing import Dict, Iterator, List, Optional

# Local
from .errors import NotFoundError


## Kinds #######################################################################


class Kind(Enum):
    """The IPLD data model kinds that a node can have"""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    LIST = "list"
    MAP = "map"


## Types #######################################################################


class SchemaType:
    """Base class for all schema types. A type without a name is an anonymous
    inline type such as [String] or {String:Int}.
    """

    kind: Kind = None

    def __init__(self, name: Optional[str] = None):
        self.name = name

    @property
    def display_name(self) -> str:
        return self.name or self._anonymous_name()

    @property
    def representation_kind(self) -> Kind:
        """The kind of this type's representation node"""
        return self.kind

    def _anonymous_name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.display_name})"


class StringType(SchemaType):
    kind = Kind.STRING


class IntType(SchemaType):
    kind = Kind.INT


class FloatType(SchemaType):
    kind = Kind.FLOAT


class BoolType(SchemaType):
    kind = Kind.BOOL


class BytesType(SchemaType):
    kind = Kind.BYTES


class ListType(SchemaType):
    kind = Kind.LIST

    def __init__(
        self,
        value_type: SchemaType,
        value_nullable: bool = False,
        name: Optional[str] = None,
    ):
        super().__init__(name)
        self.value_type = value_type
        self.value_nullable = value_nullable

    def _anonymous_name(self) -> str:
        nullable = "nullable " if self.value_nullable else ""
        return f"[{nullable}{self.value_type.display_name}]"


class MapType(SchemaType):
    kind = Kind.MAP

    def __init__(
        self,
        key_type: SchemaType,
        value_type: SchemaType,
        value_nullable: bool = False,
        name: Optional[str] = None,
    ):
        super().__init__(name)
        self.key_type = key_type
        self.value_type = value_type
        self.value_nullable = value_nullable

    def _anonymous_name(self) -> str:
        nullable = "nullable " if self.value_nullable else ""
        return (
            f"{{{self.key_type.display_name}:{nullable}{self.value_type.display_name}}}"
        )


class StructField:
    """A single named field of a struct"""

    def __init__(
        self,
        name: str,
        type_: SchemaType,
        optional: bool = False,
        nullable: bool = False,
    ):
        self.name = name
        self.type = type_
        self.optional = optional
        self.nullable = nullable

    def __repr__(self) -> str:
        mods = "".join(
            [
                "optional " if self.optional else "",
                "nullable " if self.nullable else "",
            ]
        )
        return f"StructField({self.name} {mods}{self.type.display_name})"


class StructType(SchemaType):
    """A struct with an ordered set of fields. The representation strategy is
    either "map" (the default) or "tuple".
    """

    kind = Kind.MAP
    REPRESENTATIONS = ("map", "tuple")

    def __init__(
        self,
        name: Optional[str] = None,
        fields: Optional[List[StructField]] = None,
        representation: str = "map",
    ):
        super().__init__(name)
        assert representation in self.REPRESENTATIONS, representation
        self.fields = list(fields or [])
        self.representation = representation

    @property
    def representation_kind(self) -> Kind:
        return Kind.LIST if self.representation == "tuple" else Kind.MAP

    def field(self, name: str) -> Optional[StructField]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def required_fields(self) -> List[StructField]:
        return [field for field in self.fields if not field.optional]


class EnumMember:
    """A named enum member and the value used for it in the representation"""

    def __init__(
        self,
        name: str,
        repr_value: Optional[str] = None,
        number: Optional[int] = None,
    ):
        self.name = name
        self.repr_value = name if repr_value is None else repr_value
        # Numeric value of the member in a host enum (e.g. a protobuf enum)
        self.number = number

    def __repr__(self) -> str:
        return f"EnumMember({self.name}={self.repr_value})"


class EnumType(SchemaType):
    """An enum whose members are represented either by string ("string", the
    default) or by integer ("int")
    """

    kind = Kind.STRING
    REPRESENTATIONS = ("string", "int")

    def __init__(
        self,
        name: Optional[str] = None,
        members: Optional[List[EnumMember]] = None,
        representation: str = "string",
    ):
        super().__init__(name)
        assert representation in self.REPRESENTATIONS, representation
        self.members = list(members or [])
        self.representation = representation

    @property
    def representation_kind(self) -> Kind:
        return Kind.INT if self.representation == "int" else Kind.STRING

    def member(self, name: str) -> Optional[EnumMember]:
        for member in self.members:
            if member.name == name:
                return member
        return None

    def member_by_number(self, number: int) -> Optional[EnumMember]:
        for member in self.members:
            if member.number == number:
                return member
        return None

    def representation_of(self, member: EnumMember):
        if self.representation == "int":
            return int(member.repr_value)
        return member.repr_value


## Type System #################################################################

PRELUDE_TYPES = ("String", "Int", "Float", "Bool", "Bytes")


def _prelude() -> Dict[str, SchemaType]:
    return {
        "String": StringType("String"),
        "Int": IntType("Int"),
        "Float": FloatType("Float"),
        "Bool": BoolType("Bool"),
        "Bytes": BytesType("Bytes"),
    }


class TypeSystem:
    """An ordered set of named schema types, always including the prelude
    scalar types. The optional root is the type a TypeSystem was built for when
    it was derived from some other definition (e.g. a protobuf descriptor).
    """

    def __init__(self):
        self._types = _prelude()
        self.root: Optional[SchemaType] = None

    def add(self, name: str, schema_type: SchemaType):
        self._types[name] = schema_type

    def type_by_name(self, name: str) -> SchemaType:
        """Get the type with the given name

        Args:
            name:  str
                The name of the type as declared in the schema

        Returns:
            schema_type:  SchemaType
                The declared type

        Raises:
            NotFoundError if no type with this name exists
        """
        try:
            return self._types[name]
        except KeyError:
            raise NotFoundError(f"No type named {name} in type system")

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    @property
    def declared_names(self) -> List[str]:
        """Names of all non-prelude types in declaration order"""
        return [name for name in self._types if name not in PRELUDE_TYPES]

    def __repr__(self) -> str:
        return f"TypeSystem({', '.join(self.declared_names)})"
