"""
Load binary FileDescriptorSet files (as written by
`protoc --include_imports --descriptor_set_out=...`) and resolve the file and
message descriptors they hold.
"""

# Standard
from typing import Dict, List, Optional

# Third Party
from google.protobuf import descriptor as _descriptor
from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool as _descriptor_pool
from google.protobuf import message as _message

# First Party
import alog

# Local
from .errors import DecodeError, NotFoundError, ResolutionError
from .utils import safe_add_fd_to_pool

log = alog.use_channel("DSSET")


## Interface ###################################################################


def read_descriptor_set(path: str) -> descriptor_pb2.FileDescriptorSet:
    """Read and parse a binary descriptor set file

    Args:
        path:  str
            Path to the descriptor set file

    Returns:
        fd_set:  descriptor_pb2.FileDescriptorSet
            The parsed descriptor set

    Raises:
        OSError if the file cannot be read
        DecodeError if the content is not a valid FileDescriptorSet
    """
    with open(path, "rb") as handle:
        content = handle.read()
    log.debug2("Read %d bytes from %s", len(content), path)
    fd_set = descriptor_pb2.FileDescriptorSet()
    try:
        fd_set.ParseFromString(content)
    except _message.DecodeError as err:
        raise DecodeError(f"Error parsing FileDescriptorSet {path}: {err}") from err
    log.debug2("Parsed %d file descriptors from %s", len(fd_set.file), path)
    return fd_set


def build_descriptor_pool(
    fd_set: descriptor_pb2.FileDescriptorSet,
    descriptor_pool: Optional[_descriptor_pool.DescriptorPool] = None,
) -> _descriptor_pool.DescriptorPool:
    """Add every file of the descriptor set to a descriptor pool, dependencies
    first

    Args:
        fd_set:  descriptor_pb2.FileDescriptorSet
            The descriptor set to resolve

    Kwargs:
        descriptor_pool:  Optional[descriptor_pool.DescriptorPool]
            The pool to add to. A new, empty pool is used if not given.

    Returns:
        descriptor_pool:  descriptor_pool.DescriptorPool
            The pool holding all files of the set

    Raises:
        ResolutionError if a dependency or type reference cannot be resolved
    """
    if descriptor_pool is None:
        log.debug2("Using a new descriptor pool")
        descriptor_pool = _descriptor_pool.DescriptorPool()
    files = {fd_proto.name: fd_proto for fd_proto in fd_set.file}
    for name in _dependency_order(files, descriptor_pool):
        log.debug3("Adding %s to descriptor pool", name)
        safe_add_fd_to_pool(files[name], descriptor_pool)
    return descriptor_pool


def find_file_by_path(
    descriptor_pool: _descriptor_pool.DescriptorPool, path: str
) -> _descriptor.FileDescriptor:
    """Look up a file descriptor by the path it was declared with

    Raises:
        NotFoundError if the pool has no such file
    """
    try:
        return descriptor_pool.FindFileByName(path)
    except KeyError:
        raise NotFoundError(f"Error finding descriptor for file {path}")


def find_message_descriptor(
    file_descriptor: _descriptor.FileDescriptor, name: str
) -> _descriptor.Descriptor:
    """Look up a top-level message descriptor by name within a file

    Raises:
        NotFoundError if the file declares no such message
    """
    if name not in file_descriptor.message_types_by_name:
        raise NotFoundError(
            f"No message {name} in {file_descriptor.name}, found: {sorted(file_descriptor.message_types_by_name)}"
        )
    return file_descriptor.message_types_by_name[name]


def load_message_descriptor(
    path: str,
    proto_file: str,
    message_name: str,
    descriptor_pool: Optional[_descriptor_pool.DescriptorPool] = None,
) -> _descriptor.Descriptor:
    """Read a descriptor set file and resolve a single message descriptor from
    it

    Args:
        path:  str
            Path to the descriptor set file
        proto_file:  str
            The path of the .proto file within the set (e.g. "person.proto")
        message_name:  str
            The name of the message within that file

    Returns:
        descriptor:  descriptor.Descriptor
            The resolved message descriptor
    """
    pool = build_descriptor_pool(read_descriptor_set(path), descriptor_pool)
    return find_message_descriptor(find_file_by_path(pool, proto_file), message_name)


## Implementation Details ######################################################


def _dependency_order(
    files: Dict[str, descriptor_pb2.FileDescriptorProto],
    descriptor_pool: _descriptor_pool.DescriptorPool,
) -> List[str]:
    """Order the files so that every file comes after its dependencies. A
    dependency outside of the set must already be in the pool.
    """
    ordered = []
    visiting = set()

    def visit(name: str):
        if name in ordered:
            return
        if name in visiting:
            raise ResolutionError(f"Circular dependency involving {name}")
        visiting.add(name)
        for dependency in files[name].dependency:
            if dependency in files:
                visit(dependency)
                continue
            try:
                descriptor_pool.FindFileByName(dependency)
            except KeyError:
                raise ResolutionError(
                    f"File {name} depends on {dependency}, which is not in the descriptor set"
                )
        visiting.discard(name)
        ordered.append(name)

    for name in files:
        visit(name)
    return ordered
