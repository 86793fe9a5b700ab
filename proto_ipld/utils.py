"""
Common utilities that are shared across modules
"""

# Standard
import re

# Third Party
from google.protobuf import descriptor_pb2
import google.protobuf.descriptor_pool

# First Party
import alog

# Local
from .errors import ResolutionError

log = alog.use_channel("PIUTL")


def to_snake(camel_str: str) -> str:
    """Convert an UpperCamelCase or lowerCamelCase string to snake_case"""
    if not camel_str:
        return camel_str
    return re.sub(
        "([a-z0-9])([A-Z])", r"\1_\2", re.sub("([A-Z]+)([A-Z][a-z])", r"\1_\2", camel_str)
    ).lower()


def safe_add_fd_to_pool(
    fd_proto: descriptor_pb2.FileDescriptorProto,
    descriptor_pool: google.protobuf.descriptor_pool.DescriptorPool,
):
    """Safely add a new file descriptor to a descriptor pool. If a file with the
    same name is already present, it must have identical content, in which case
    nothing is added. Any other failure to add the file means one of its
    references could not be resolved and is raised as a ResolutionError.
    """
    try:
        existing_fd = descriptor_pool.FindFileByName(fd_proto.name)
    except KeyError:
        # It's okay for the file to not already exist, we'll add it!
        try:
            descriptor_pool.AddSerializedFile(fd_proto.SerializeToString())
        except (TypeError, KeyError) as err:
            raise ResolutionError(
                f"Failed to add {fd_proto.name} to descriptor pool: {err}"
            ) from err
        return

    existing_proto = descriptor_pb2.FileDescriptorProto()
    existing_fd.CopyToProto(existing_proto)
    log.debug3("File %s already in pool, comparing content", fd_proto.name)
    if not _same_file_content(fd_proto, existing_proto):
        raise ResolutionError(
            f"Cannot add new file {fd_proto.name} to descriptor pool, file already exists with different content"
        )


## Implementation Details ######################################################


def _same_file_content(
    d1: descriptor_pb2.FileDescriptorProto, d2: descriptor_pb2.FileDescriptorProto
) -> bool:
    """Compare two file descriptor protos ignoring source info and json names,
    which CopyToProto does not round-trip reliably
    """
    d1, d2 = _normalized(d1), _normalized(d2)
    return d1 == d2


def _normalized(
    fd_proto: descriptor_pb2.FileDescriptorProto,
) -> descriptor_pb2.FileDescriptorProto:
    normalized = descriptor_pb2.FileDescriptorProto()
    normalized.CopyFrom(fd_proto)
    normalized.ClearField("source_code_info")
    if normalized.syntax == "proto2":
        normalized.ClearField("syntax")
    for message in normalized.message_type:
        _strip_json_names(message)
    return normalized


def _strip_json_names(message: descriptor_pb2.DescriptorProto):
    for field in message.field:
        field.ClearField("json_name")
    for nested in message.nested_type:
        _strip_json_names(nested)
