"""
Binary serialization helpers for protobuf messages, static or dynamic
"""

# Standard
from typing import Any, Dict, Type, Union

# Third Party
from google.protobuf import descriptor as _descriptor
from google.protobuf import message as _message

# First Party
import alog

# Local
from .errors import DecodeError, EncodeError

log = alog.use_channel("MSGS")


## Interface ###################################################################


def serialize(message: _message.Message) -> bytes:
    """Serialize a message to its binary wire format. Output is deterministic
    so that equal messages always give equal bytes.

    Raises:
        EncodeError if the message cannot be serialized (e.g. missing proto2
        required fields)
    """
    try:
        data = message.SerializeToString(deterministic=True)
    except _message.EncodeError as err:
        raise EncodeError(
            f"Failed to serialize {message.DESCRIPTOR.full_name}: {err}"
        ) from err
    log.debug3("Serialized %s to %d bytes", message.DESCRIPTOR.full_name, len(data))
    return data


def deserialize(
    data: bytes,
    message: Union[_message.Message, Type[_message.Message]],
) -> _message.Message:
    """Parse binary data into a message

    Args:
        data:  bytes
            The serialized message
        message:  Union[_message.Message, Type[_message.Message]]
            Either an empty message instance which is populated in place, or a
            message class to instantiate

    Returns:
        message:  _message.Message
            The populated message

    Raises:
        DecodeError if the data is truncated or malformed
    """
    if isinstance(message, type):
        message = message()
    try:
        message.ParseFromString(data)
    except _message.DecodeError as err:
        raise DecodeError(
            f"Failed to parse {message.DESCRIPTOR.full_name}: {err}"
        ) from err
    log.debug3("Deserialized %d bytes into %s", len(data), message.DESCRIPTOR.full_name)
    return message


def fields_by_number(message: _message.Message) -> Dict[int, Any]:
    """Get the populated field values of a message keyed by field number.
    Nested messages are converted recursively, repeated fields become lists
    and map fields become dicts. This allows comparing messages built from
    different classes for the same descriptor.
    """
    values = {}
    for field_descriptor, value in message.ListFields():
        values[field_descriptor.number] = _field_value(field_descriptor, value)
    return values


## Implementation Details ######################################################


def _field_value(field_descriptor: _descriptor.FieldDescriptor, value: Any) -> Any:
    is_message = field_descriptor.type == _descriptor.FieldDescriptor.TYPE_MESSAGE
    message_type = field_descriptor.message_type
    if is_message and message_type.GetOptions().map_entry:
        value_field = message_type.fields_by_name["value"]
        return {key: _field_value(value_field, val) for key, val in value.items()}
    if field_descriptor.is_repeated:
        return [_single_value(field_descriptor, item) for item in value]
    return _single_value(field_descriptor, value)


def _single_value(field_descriptor: _descriptor.FieldDescriptor, value: Any) -> Any:
    if field_descriptor.type == _descriptor.FieldDescriptor.TYPE_MESSAGE:
        return fields_by_number(value)
    return value
