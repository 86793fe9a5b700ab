"""
Tests for binding python values to schema types
"""

# Standard
from dataclasses import dataclass
from enum import Enum
from types import SimpleNamespace
from typing import List, Optional

# Third Party
import pytest

# Local
from .conftest import PERSON_SCHEMA_TEXT
from proto_ipld import model
from proto_ipld.bindnode import ABSENT, NULL, wrap
from proto_ipld.errors import NotFoundError, SchemaMismatchError
from proto_ipld.schema import Kind
from proto_ipld.schema_dsl import load_schema

## Helpers #####################################################################


@dataclass
class Person:
    name: str
    age: Optional[int] = None
    friends: Optional[List[str]] = None


class Color(Enum):
    RED = 1
    GREEN = 2


@pytest.fixture
def person_type():
    yield load_schema(PERSON_SCHEMA_TEXT).type_by_name("Person")


## Happy Path ##################################################################


def test_wrap_dataclass(person_type):
    """Make sure a dataclass binds to a struct with CamelCase field names"""
    person = Person(name="Michael", friends=["Sarah", "Alex"])
    node = wrap(person, person_type)
    assert node.kind == Kind.MAP
    assert node.unwrap() is person
    assert node.keys() == ["Name", "Age", "Friends"]
    assert node.lookup("Name").as_value() == "Michael"
    assert node.lookup("Age") is ABSENT
    friends = node.lookup("Friends")
    assert friends.kind == Kind.LIST
    assert friends.length() == 2
    assert [child.as_value() for child in friends.elements()] == ["Sarah", "Alex"]
    assert friends.lookup_index(1).as_value() == "Alex"


def test_wrap_does_not_copy(person_type):
    """Make sure the node reads through to the bound value"""
    person = Person(name="Michael", friends=["Sarah"])
    node = wrap(person, person_type)
    person.friends.append("Alex")
    person.name = "Mike"
    assert node.lookup("Friends").length() == 2
    assert node.lookup("Name").as_value() == "Mike"


def test_wrap_mapping_and_object_hosts(person_type):
    """Make sure mappings and plain objects bind by exact or snake_case name"""
    mapping_node = wrap({"Name": "Sarah", "Age": 31}, person_type)
    assert mapping_node.lookup("Age").as_value() == 31

    snake_node = wrap({"name": "Sarah"}, person_type)
    assert snake_node.lookup("Name").as_value() == "Sarah"

    object_node = wrap(SimpleNamespace(Name="Alex", Age=None), person_type)
    assert object_node.lookup("Name").as_value() == "Alex"
    assert object_node.lookup("Age") is ABSENT


def test_wrap_items_includes_absent(person_type):
    """Make sure items on the typed node includes absent fields"""
    node = wrap(Person(name="Michael"), person_type)
    items = dict(node.items())
    assert list(items) == ["Name", "Age", "Friends"]
    assert items["Age"].is_absent
    assert items["Friends"].is_absent


def test_representation_omits_absent(person_type):
    """Make sure the map representation skips absent fields"""
    node = wrap(Person(name="Michael", friends=["Sarah", "Alex"]), person_type)
    rep = node.representation()
    assert rep.kind == Kind.MAP
    assert [key for key, _ in rep.items()] == ["Name", "Friends"]
    assert rep.length() == 2
    assert rep.lookup("Name").as_value() == "Michael"
    with pytest.raises(NotFoundError):
        rep.lookup("Age")


def test_wrap_nullable_fields():
    """Make sure None in a nullable field gives NULL rather than ABSENT"""
    type_system = load_schema(
        """
        type Entry struct {
            value nullable Int
            extra optional nullable Int
            items [nullable String]
        }
        """
    )
    node = wrap(
        {"value": None, "items": ["a", None]}, type_system.type_by_name("Entry")
    )
    assert node.lookup("value") is NULL
    assert node.lookup("value").as_value() is None
    assert node.lookup("extra") is ABSENT
    assert node.lookup("items").lookup_index(1) is NULL


def test_wrap_map_type():
    """Make sure map types expose their keys and values"""
    type_system = load_schema("type Ages {String:Int}")
    node = wrap({"Sarah": 31, "Alex": 20}, type_system.type_by_name("Ages"))
    assert node.kind == Kind.MAP
    assert node.keys() == ["Sarah", "Alex"]
    assert node.lookup("Alex").as_value() == 20
    assert node.length() == 2
    with pytest.raises(NotFoundError):
        node.lookup("Michael")


def test_wrap_enums():
    """Make sure enums bind from Enum members, names and numbers"""
    type_system = load_schema(
        """
        type Color enum {
            | RED ("r")
            | GREEN ("g")
        }
        type Level enum {
            | Low ("1")
            | High ("2")
        } representation int
        """
    )
    color = type_system.type_by_name("Color")
    assert wrap(Color.GREEN, color).as_value() == "GREEN"
    assert wrap(Color.GREEN, color).representation().as_value() == "g"
    assert wrap("RED", color).representation().as_value() == "r"

    level = type_system.type_by_name("Level")
    node = wrap(2, level)
    assert node.as_value() == "High"
    assert node.representation().kind == Kind.INT
    assert node.representation().as_value() == 2


def test_wrap_tuple_representation():
    """Make sure tuple-represented structs give a list representation"""
    type_system = load_schema(
        """
        type Point struct {
            x Int
            y Float
        } representation tuple
        """
    )
    node = wrap({"x": 1, "y": 2.5}, type_system.type_by_name("Point"))
    assert node.kind == Kind.MAP
    rep = node.representation()
    assert rep.kind == Kind.LIST
    assert [child.as_value() for child in rep.elements()] == [1, 2.5]


def test_wrap_protobuf_message_with_schema():
    """Make sure protobuf messages bind through their descriptor"""
    type_system = load_schema(
        """
        type Person struct {
            name String
            age Int
        }
        """
    )
    message = model.Person(name="Alex", age=20)
    node = wrap(message, type_system.type_by_name("Person"))
    assert node.lookup("name").as_value() == "Alex"
    assert node.lookup("age").as_value() == 20


def test_wrap_without_schema_infers():
    """Make sure a dataclass can be bound without an explicit schema"""
    node = wrap(Person(name="Michael", age=30))
    assert node.schema_type.name == "Person"
    assert node.lookup("age").as_value() == 30
    assert node.lookup("friends") is ABSENT


def test_wrap_scalars():
    """Make sure scalar nodes give back python values"""
    type_system = load_schema("")
    assert wrap(1, type_system.type_by_name("Float")).as_value() == 1.0
    assert wrap(b"abc", type_system.type_by_name("Bytes")).as_value() == b"abc"
    assert wrap(True, type_system.type_by_name("Bool")).as_value() is True
    assert wrap("x", type_system.type_by_name("String")).length() == -1


def test_typed_accessors(person_type):
    """Make sure the kind-checked accessors read matching scalars"""
    node = wrap(Person(name="Michael", age=30), person_type)
    assert node.lookup("Name").as_string() == "Michael"
    assert node.lookup("Age").as_int() == 30
    with pytest.raises(SchemaMismatchError):
        node.lookup("Name").as_int()
    with pytest.raises(SchemaMismatchError):
        node.as_string()


## Error Cases #################################################################


@pytest.mark.parametrize(
    "value",
    [
        # Missing required field
        {"Age": 3},
        # Wrong scalar type
        {"Name": 5},
        # Bool is not an Int
        {"Name": "Michael", "Age": True},
        # Wrong list element type
        {"Name": "Michael", "Friends": ["Sarah", 2]},
        # None in a non-nullable list
        {"Name": "Michael", "Friends": [None]},
        # A list where a struct belongs
        ["Michael"],
        # A scalar where a struct belongs
        "Michael",
    ],
)
def test_wrap_mismatch(person_type, value):
    """Make sure values that do not fit the schema raise SchemaMismatchError"""
    with pytest.raises(SchemaMismatchError):
        wrap(value, person_type)


def test_wrap_required_none():
    """Make sure None in a required, non-nullable field is rejected"""
    type_system = load_schema("type Foo struct { bar String }")
    with pytest.raises(SchemaMismatchError):
        wrap({"bar": None}, type_system.type_by_name("Foo"))


def test_wrap_bad_enum_value():
    """Make sure values that are not enum members are rejected"""
    type_system = load_schema("type Color enum { | RED | GREEN }")
    with pytest.raises(SchemaMismatchError):
        wrap("BLUE", type_system.type_by_name("Color"))


def test_wrap_non_string_map_key():
    """Make sure maps with non-string keys are rejected"""
    type_system = load_schema("type Ages {String:Int}")
    with pytest.raises(SchemaMismatchError):
        wrap({1: 2}, type_system.type_by_name("Ages"))


def test_wrap_schema_less_uninferable():
    """Make sure binding without a schema fails for values with no declared
    shape
    """
    with pytest.raises(SchemaMismatchError):
        wrap({"Name": "Michael"})
    with pytest.raises(SchemaMismatchError):
        wrap(model.Person(name="Alex", age=20))


def test_lookup_unknown_field(person_type):
    """Make sure looking up a field the struct does not declare fails"""
    node = wrap(Person(name="Michael"), person_type)
    with pytest.raises(NotFoundError):
        node.lookup("Nickname")


def test_wrong_kind_access(person_type):
    """Make sure list and scalar access on a struct node fails"""
    node = wrap(Person(name="Michael", friends=[]), person_type)
    with pytest.raises(SchemaMismatchError):
        node.lookup_index(0)
    with pytest.raises(SchemaMismatchError):
        list(node.elements())
    with pytest.raises(SchemaMismatchError):
        node.as_value()
    with pytest.raises(NotFoundError):
        node.lookup("Friends").lookup_index(0)
