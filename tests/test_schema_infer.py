"""
Tests for schema inference from python types
"""

# Standard
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Dict, List, Optional, Union

# Third Party
import pytest

# Local
from proto_ipld import model
from proto_ipld.errors import SchemaMismatchError
from proto_ipld.schema import (
    BoolType,
    BytesType,
    EnumType,
    FloatType,
    IntType,
    ListType,
    MapType,
    StringType,
    StructType,
)
from proto_ipld.schema_infer import infer_schema

## Helpers #####################################################################


@dataclass
class Person:
    name: str
    age: Optional[int] = None
    friends: Optional[List[str]] = None


class Mood(Enum):
    HAPPY = 1
    SAD = 2


@dataclass
class Profile:
    owner: Person
    mood: Mood
    scores: Dict[str, float]
    avatar: bytes
    verified: bool
    nicknames: List[Optional[str]]
    note: Annotated[str, "free text"]


@dataclass
class Tree:
    label: str
    children: List["Tree"]


@dataclass
class Unresolvable:
    thing: "NotDefinedAnywhere"  # noqa: F821


## Happy Path ##################################################################


@pytest.mark.parametrize(
    ["host_type", "schema_class"],
    [
        (str, StringType),
        (int, IntType),
        (float, FloatType),
        (bool, BoolType),
        (bytes, BytesType),
    ],
)
def test_infer_schema_scalars(host_type, schema_class):
    """Make sure python scalar types map to the prelude scalar types"""
    assert isinstance(infer_schema(host_type), schema_class)


def test_infer_schema_dataclass():
    """Make sure a dataclass becomes a struct with Optional fields optional"""
    person = infer_schema(Person)
    assert isinstance(person, StructType)
    assert person.name == "Person"
    assert [field.name for field in person.fields] == ["name", "age", "friends"]
    assert not person.field("name").optional
    assert person.field("age").optional
    assert isinstance(person.field("age").type, IntType)
    assert person.field("friends").optional
    assert isinstance(person.field("friends").type, ListType)
    assert isinstance(person.field("friends").type.value_type, StringType)


def test_infer_schema_nested_types():
    """Make sure nested dataclasses, enums, dicts and annotations are inferred"""
    profile = infer_schema(Profile)
    assert isinstance(profile.field("owner").type, StructType)
    assert profile.field("owner").type.name == "Person"

    mood = profile.field("mood").type
    assert isinstance(mood, EnumType)
    assert [member.name for member in mood.members] == ["HAPPY", "SAD"]

    scores = profile.field("scores").type
    assert isinstance(scores, MapType)
    assert isinstance(scores.key_type, StringType)
    assert isinstance(scores.value_type, FloatType)

    assert isinstance(profile.field("avatar").type, BytesType)
    assert isinstance(profile.field("verified").type, BoolType)
    nicknames = profile.field("nicknames").type
    assert isinstance(nicknames, ListType)
    assert nicknames.value_nullable
    assert isinstance(profile.field("note").type, StringType)


def test_infer_schema_recursive_dataclass():
    """Make sure a self-referencing dataclass resolves to a single struct"""
    tree = infer_schema(Tree)
    assert tree.field("children").type.value_type is tree


def test_infer_schema_typing_constructs():
    """Make sure bare typing constructs can be inferred directly"""
    names = infer_schema(List[str])
    assert isinstance(names, ListType)
    ages = infer_schema(Dict[str, Optional[int]])
    assert isinstance(ages, MapType)
    assert ages.value_nullable


## Error Cases #################################################################


def test_infer_schema_protobuf_message():
    """Make sure protobuf message classes are rejected with a pointer to
    descriptor_to_schema
    """
    with pytest.raises(SchemaMismatchError) as excinfo:
        infer_schema(model.Person)
    assert "descriptor_to_schema" in str(excinfo.value)


@pytest.mark.parametrize(
    "host_type",
    [
        dict,
        list,
        object,
        Dict[int, str],
        Union[int, str],
        List[Union[int, str, None]],
    ],
)
def test_infer_schema_not_introspectable(host_type):
    """Make sure types without a declared shape raise SchemaMismatchError"""
    with pytest.raises(SchemaMismatchError):
        infer_schema(host_type)


def test_infer_schema_unresolvable_annotation():
    """Make sure unresolvable forward references raise SchemaMismatchError"""
    with pytest.raises(SchemaMismatchError):
        infer_schema(Unresolvable)
