"""
The statically declared Person message (see person.proto).

The file descriptor is declared here in python and registered in the default
descriptor pool, which gives the same message class that protoc-generated
code would.
"""

# Standard
import os

# Third Party
from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool as _descriptor_pool
from google.protobuf import message_factory

# First Party
import alog

# Local
from ..utils import safe_add_fd_to_pool

log = alog.use_channel("MODEL")

_FieldProto = descriptor_pb2.FieldDescriptorProto

PERSON_PROTO_FILE = "person.proto"
PERSON_PACKAGE = "model"

PERSON_FILE_PROTO = descriptor_pb2.FileDescriptorProto(
    name=PERSON_PROTO_FILE,
    package=PERSON_PACKAGE,
    syntax="proto3",
    message_type=[
        descriptor_pb2.DescriptorProto(
            name="Person",
            field=[
                _FieldProto(
                    name="name",
                    number=1,
                    label=_FieldProto.LABEL_OPTIONAL,
                    type=_FieldProto.TYPE_STRING,
                ),
                _FieldProto(
                    name="age",
                    number=2,
                    label=_FieldProto.LABEL_OPTIONAL,
                    type=_FieldProto.TYPE_INT32,
                ),
            ],
        )
    ],
)

# Path of the descriptor set shipped alongside this module
DEFAULT_DESCRIPTOR_SET = os.path.join(os.path.dirname(__file__), "descriptor.pb")

safe_add_fd_to_pool(PERSON_FILE_PROTO, _descriptor_pool.Default())
Person = message_factory.GetMessageClass(
    _descriptor_pool.Default().FindMessageTypeByName(f"{PERSON_PACKAGE}.Person")
)


def write_descriptor_set(path: str) -> descriptor_pb2.FileDescriptorSet:
    """Write a binary FileDescriptorSet holding person.proto to the given path

    Args:
        path:  str
            The output file path. Parent directories are created as needed.

    Returns:
        fd_set:  descriptor_pb2.FileDescriptorSet
            The descriptor set that was written
    """
    fd_set = descriptor_pb2.FileDescriptorSet(file=[PERSON_FILE_PROTO])
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent)
    with open(path, "wb") as handle:
        handle.write(fd_set.SerializeToString(deterministic=True))
    log.debug("Wrote descriptor set for %s to %s", PERSON_PROTO_FILE, path)
    return fd_set
