"""
Parser for the IPLD schema DSL using Lark.

Example:

```
type Person struct {
    Name    String
    Age     optional Int
    Friends optional [String]
}
```
"""

# Standard
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union
import os

# Third Party
from lark import Lark
from lark.exceptions import LarkError
from lark.visitors import Transformer

# First Party
import alog

# Local
from .errors import SchemaParseError
from .schema import (
    PRELUDE_TYPES,
    EnumMember,
    EnumType,
    ListType,
    MapType,
    SchemaType,
    StringType,
    StructField,
    StructType,
    TypeSystem,
)

log = alog.use_channel("SCDSL")

_g_parser: Optional[Lark] = None


## Interface ###################################################################


def load_schema(text: Union[str, bytes]) -> TypeSystem:
    """Parse schema DSL text into a TypeSystem

    Args:
        text:  Union[str, bytes]
            The schema source text

    Returns:
        type_system:  TypeSystem
            The type system holding every declared type plus the prelude

    Raises:
        SchemaParseError if the text is not well formed or references unknown
        types. No partial type system is ever returned.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    try:
        tree = _get_parser().parse(text)
        typedefs = _TreeTransformer().transform(tree)
    except LarkError as err:
        raise SchemaParseError(f"Invalid schema text: {err}") from err
    log.debug2("Parsed %d type definitions", len(typedefs))
    return _TypeSystemBuilder(typedefs).build()


## Parse Tree ##################################################################


@dataclass
class _TypeRef:
    name: str


@dataclass
class _ListExpr:
    value: Any
    nullable: bool = False


@dataclass
class _MapExpr:
    key: str
    value: Any
    nullable: bool = False


@dataclass
class _FieldDef:
    name: str
    type_expr: Any
    modifiers: List[str] = field(default_factory=list)


@dataclass
class _StructDef:
    fields: List[_FieldDef]
    representation: str = "map"


@dataclass
class _EnumDef:
    members: List[EnumMember]
    representation: str = "string"


@dataclass
class _AliasDef:
    type_expr: Any


@dataclass
class _Representation:
    value: str


@dataclass
class _TypeDef:
    name: str
    body: Union[_StructDef, _EnumDef, _AliasDef]


class _Nullable:
    pass


class _TreeTransformer(Transformer):
    """Transform the parse tree into plain type definitions"""

    def start(self, args: List[Any]) -> List[_TypeDef]:
        return list(args)

    def typedef(self, args: List[Any]) -> _TypeDef:
        return _TypeDef(name=str(args[0]), body=args[1])

    def struct_body(self, args: List[Any]) -> _StructDef:
        reprs = [arg for arg in args if isinstance(arg, _Representation)]
        return _StructDef(
            fields=[arg for arg in args if isinstance(arg, _FieldDef)],
            representation=reprs[0].value if reprs else "map",
        )

    def struct_field(self, args: List[Any]) -> _FieldDef:
        return _FieldDef(name=str(args[0]), modifiers=args[1:-1], type_expr=args[-1])

    def field_modifier(self, args: List[Any]) -> str:
        return str(args[0])

    def struct_representation(self, args: List[Any]) -> _Representation:
        return _Representation(str(args[0]))

    def enum_body(self, args: List[Any]) -> _EnumDef:
        reprs = [arg for arg in args if isinstance(arg, _Representation)]
        return _EnumDef(
            members=[arg for arg in args if isinstance(arg, EnumMember)],
            representation=reprs[0].value if reprs else "string",
        )

    def enum_member(self, args: List[Any]) -> EnumMember:
        return EnumMember(str(args[0]), args[1] if len(args) > 1 else None)

    def enum_value(self, args: List[Any]) -> str:
        return str(args[0])[1:-1]

    def enum_representation(self, args: List[Any]) -> _Representation:
        return _Representation(str(args[0]))

    def alias_body(self, args: List[Any]) -> _AliasDef:
        return _AliasDef(type_expr=args[0])

    def named_type(self, args: List[Any]) -> _TypeRef:
        return _TypeRef(str(args[0]))

    def nullable_marker(self, args: List[Any]) -> _Nullable:
        return _Nullable()

    def list_type(self, args: List[Any]) -> _ListExpr:
        return _ListExpr(value=args[-1], nullable=isinstance(args[0], _Nullable))

    def map_type(self, args: List[Any]) -> _MapExpr:
        return _MapExpr(
            key=str(args[0]),
            value=args[-1],
            nullable=isinstance(args[1], _Nullable),
        )


## Implementation Details ######################################################


def _get_parser() -> Lark:
    global _g_parser
    if not _g_parser:
        with open(
            os.path.join(os.path.dirname(__file__), "schema.lark"), encoding="utf-8"
        ) as handle:
            grammar = handle.read()
        _g_parser = Lark(grammar, parser="lalr")
    return _g_parser


class _TypeSystemBuilder:
    """Resolve parsed type definitions into linked SchemaType objects. Struct
    and enum types are created up front so that they can be referenced before
    they are declared.
    """

    def __init__(self, typedefs: List[_TypeDef]):
        self.typedefs: Dict[str, _TypeDef] = {}
        for typedef in typedefs:
            if typedef.name in PRELUDE_TYPES:
                raise SchemaParseError(f"Cannot redefine prelude type {typedef.name}")
            if typedef.name in self.typedefs:
                raise SchemaParseError(f"Duplicate type name {typedef.name}")
            self.typedefs[typedef.name] = typedef
        self.type_system = TypeSystem()
        self._resolving: Set[str] = set()

    def build(self) -> TypeSystem:
        for name, typedef in self.typedefs.items():
            if isinstance(typedef.body, _StructDef):
                self.type_system.add(
                    name,
                    StructType(name, representation=typedef.body.representation),
                )
            elif isinstance(typedef.body, _EnumDef):
                self.type_system.add(name, self._build_enum(name, typedef.body))

        for name, typedef in self.typedefs.items():
            if isinstance(typedef.body, _StructDef):
                self._fill_struct(self.type_system.type_by_name(name), typedef.body)
            elif isinstance(typedef.body, _AliasDef):
                self._resolve_alias(name)
        return self.type_system

    def _build_enum(self, name: str, enum_def: _EnumDef) -> EnumType:
        seen = set()
        for member in enum_def.members:
            if member.name in seen:
                raise SchemaParseError(f"Duplicate member {member.name} in enum {name}")
            seen.add(member.name)
            if enum_def.representation == "int":
                try:
                    int(member.repr_value)
                except ValueError:
                    raise SchemaParseError(
                        f"Enum {name} has int representation but member {member.name} has value {member.repr_value!r}"
                    )
        return EnumType(name, enum_def.members, enum_def.representation)

    def _fill_struct(self, struct_type: StructType, struct_def: _StructDef):
        for field_def in struct_def.fields:
            if struct_type.field(field_def.name) is not None:
                raise SchemaParseError(
                    f"Duplicate field {field_def.name} in struct {struct_type.name}"
                )
            optional = "optional" in field_def.modifiers
            if optional and struct_def.representation == "tuple":
                raise SchemaParseError(
                    f"Field {field_def.name} of tuple-represented struct {struct_type.name} cannot be optional"
                )
            log.debug3("Adding field %s to %s", field_def.name, struct_type.name)
            struct_type.fields.append(
                StructField(
                    field_def.name,
                    self._resolve_expr(field_def.type_expr),
                    optional=optional,
                    nullable="nullable" in field_def.modifiers,
                )
            )

    def _resolve_alias(self, name: str) -> SchemaType:
        if name in self.type_system:
            return self.type_system.type_by_name(name)
        if name in self._resolving:
            raise SchemaParseError(f"Type {name} is defined in terms of itself")
        self._resolving.add(name)
        type_expr = self.typedefs[name].body.type_expr
        resolved = self._resolve_expr(type_expr, name=name)
        self._resolving.discard(name)
        self.type_system.add(name, resolved)
        return resolved

    def _resolve_expr(self, type_expr: Any, name: Optional[str] = None) -> SchemaType:
        if isinstance(type_expr, _TypeRef):
            return self._resolve_name(type_expr.name)
        if isinstance(type_expr, _ListExpr):
            return ListType(
                self._resolve_expr(type_expr.value),
                value_nullable=type_expr.nullable,
                name=name,
            )
        if isinstance(type_expr, _MapExpr):
            key_type = self._resolve_name(type_expr.key)
            if not isinstance(key_type, StringType):
                raise SchemaParseError(
                    f"Map keys must be strings, got {key_type.display_name}"
                )
            return MapType(
                key_type,
                self._resolve_expr(type_expr.value),
                value_nullable=type_expr.nullable,
                name=name,
            )
        raise SchemaParseError(f"Unsupported type expression {type_expr}")

    def _resolve_name(self, name: str) -> SchemaType:
        if name in self.type_system:
            return self.type_system.type_by_name(name)
        if name in self.typedefs:
            return self._resolve_alias(name)
        raise SchemaParseError(f"Unknown type name {name}")


## Rendering ###################################################################


def render_schema(type_system: TypeSystem) -> str:
    """Render the declared types of a type system as schema DSL text which
    load_schema can parse back
    """
    blocks = [
        _render_typedef(name, type_system.type_by_name(name))
        for name in type_system.declared_names
    ]
    return "\n\n".join(blocks) + "\n"


def _render_typedef(name: str, schema_type: SchemaType) -> str:
    if schema_type.name != name:
        return f"type {name} {_render_type_expr(schema_type)}"
    if isinstance(schema_type, StructType):
        lines = [f"type {name} struct {{"]
        for field in schema_type.fields:
            mods = "".join(
                [
                    "optional " if field.optional else "",
                    "nullable " if field.nullable else "",
                ]
            )
            lines.append(f"    {field.name} {mods}{_render_type_expr(field.type)}")
        closing = "}"
        if schema_type.representation != "map":
            closing += f" representation {schema_type.representation}"
        return "\n".join(lines + [closing])
    if isinstance(schema_type, EnumType):
        lines = [f"type {name} enum {{"]
        for member in schema_type.members:
            value = "" if member.repr_value == member.name else f' ("{member.repr_value}")'
            lines.append(f"    | {member.name}{value}")
        closing = "}"
        if schema_type.representation != "string":
            closing += f" representation {schema_type.representation}"
        return "\n".join(lines + [closing])
    return f"type {name} {_render_type_expr(schema_type, inline=True)}"


def _render_type_expr(schema_type: SchemaType, inline: bool = False) -> str:
    if schema_type.name and not inline:
        return schema_type.name
    if isinstance(schema_type, ListType):
        nullable = "nullable " if schema_type.value_nullable else ""
        return f"[{nullable}{_render_type_expr(schema_type.value_type)}]"
    if isinstance(schema_type, MapType):
        nullable = "nullable " if schema_type.value_nullable else ""
        return (
            f"{{{_render_type_expr(schema_type.key_type)}:"
            f"{nullable}{_render_type_expr(schema_type.value_type)}}}"
        )
    raise SchemaParseError(f"Cannot render anonymous type {schema_type!r}")
