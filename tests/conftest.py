"""
Common test helpers
"""

# Standard
import os

# Third Party
from google.protobuf import descriptor_pb2, descriptor_pool
import pytest

# First Party
import alog

# Local
from proto_ipld.model import write_descriptor_set

# Global logging config
alog.configure(
    default_level=os.environ.get("LOG_LEVEL", "info"),
    filters=os.environ.get("LOG_FILTERS", ""),
    formatter="json" if os.environ.get("LOG_JSON", "").lower() == "true" else "pretty",
    thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
)

PERSON_SCHEMA_TEXT = """
type Person struct {
    Name    String
    Age     optional Int
    Friends optional [String]
}
"""


@pytest.fixture
def temp_dpool():
    """Fixture to isolate the descriptor pool used in each test"""
    yield descriptor_pool.DescriptorPool()


@pytest.fixture
def descriptor_set_file(tmp_path):
    """Fixture that writes the person.proto descriptor set to a temp file"""
    path = str(tmp_path / "descriptor.pb")
    write_descriptor_set(path)
    yield path


def make_file_proto(
    name: str,
    package: str,
    messages,
    dependencies=(),
    syntax: str = "proto3",
) -> descriptor_pb2.FileDescriptorProto:
    """Helper to build a FileDescriptorProto from a list of DescriptorProtos"""
    return descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax=syntax,
        dependency=list(dependencies),
        message_type=list(messages),
    )
