"""
The end to end demonstration run: bind a plain python value to an IPLD
schema and encode it as DAG-JSON, round trip a static protobuf message, then
rebuild the same message dynamically from a descriptor set file and encode it
as DAG-JSON through an explicit schema.
"""

# Standard
from dataclasses import dataclass
from typing import List, Optional, TextIO
import sys

# Third Party
from google.protobuf import descriptor_pb2, text_format

# First Party
import alog

# Local
from . import dagjson, model
from .bindnode import wrap
from .descriptor_set import (
    build_descriptor_pool,
    find_file_by_path,
    find_message_descriptor,
    read_descriptor_set,
)
from .descriptor_to_schema import descriptor_to_schema
from .dynamic import parse_dynamic_message
from .errors import SchemaMismatchError
from .messages import deserialize, serialize
from .schema_dsl import load_schema, render_schema

log = alog.use_channel("DEMO")

PERSON_SCHEMA = """
type Person struct {
    Name    String
    Age     optional Int
    Friends optional [String]
}
"""


@dataclass
class Person:
    name: str
    age: Optional[int] = None
    friends: Optional[List[str]] = None


def run(
    descriptor_set_path: str = model.DEFAULT_DESCRIPTOR_SET,
    proto_file: str = model.PERSON_PROTO_FILE,
    message_name: str = "Person",
    out: Optional[TextIO] = None,
):
    """Run the demonstration, writing DAG-JSON and diagnostics to out

    Args:
        descriptor_set_path:  str
            Path to the binary FileDescriptorSet to load
        proto_file:  str
            The .proto file path within the descriptor set
        message_name:  str
            The message to build dynamically from that file
        out:  Optional[TextIO]
            The output stream (stdout by default)

    Raises:
        Any ProtoIpldError or OSError except for the expected failure of the
        schema-less binding, which is reported and not raised
    """
    out = out or sys.stdout

    # Bind a plain value to the inline schema and encode its representation
    type_system = load_schema(PERSON_SCHEMA)
    plain_person = Person(name="Michael", friends=["Sarah", "Alex"])
    person_node = wrap(plain_person, type_system.type_by_name("Person"))
    dagjson.encode(person_node.representation(), out)
    print(file=out)

    # Round trip the static message through its binary encoding
    person = model.Person(name="Alex", age=20)
    print("Original person: ", _to_text(person), file=out)
    person_data = serialize(person)
    new_person = deserialize(person_data, model.Person())
    print(f"Deserialized person: {_to_text(new_person)}", file=out)

    # Resolve the message descriptor from the descriptor set file
    descriptor_pool = build_descriptor_pool(read_descriptor_set(descriptor_set_path))
    file_descriptor = find_file_by_path(descriptor_pool, proto_file)
    fd_proto = descriptor_pb2.FileDescriptorProto()
    file_descriptor.CopyToProto(fd_proto)
    print(file=out)
    print("FileDescriptor: ", _to_text(fd_proto), file=out)
    print(file=out)
    print("File path: ", file_descriptor.name, file=out)
    print("Package name: ", file_descriptor.package, file=out)
    print("Messages: ", list(file_descriptor.message_types_by_name), file=out)
    print(file=out)

    message_descriptor = find_message_descriptor(file_descriptor, message_name)
    fields = [
        f"{field.name}={field.number}" for field in message_descriptor.fields
    ]
    print(
        f"{message_name} MessageDescriptor: {message_descriptor.full_name} {fields}",
        file=out,
    )
    print(file=out)

    # Build the same message dynamically from the descriptor
    dynamic_person = parse_dynamic_message(message_descriptor, person_data)
    print(f"Deserialized dynamic person: {_to_text(dynamic_person)}", file=out)

    # A dynamic message has no python-level shape to infer a schema from
    try:
        wrap(dynamic_person)
    except SchemaMismatchError as err:
        log.warning("Schema-less binding of dynamic message failed: %s", err)
        print(f"Schema-less binding failed: {err}", file=out)

    schema = descriptor_to_schema(message_descriptor)
    print("Schema from descriptor:", file=out)
    out.write(render_schema(schema))
    dagjson.encode(wrap(dynamic_person, schema.root), out)
    print(file=out)


def _to_text(message) -> str:
    return text_format.MessageToString(message, as_one_line=True)
