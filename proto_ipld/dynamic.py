"""
Build protobuf messages at runtime from a message descriptor, without any
generated or statically declared class
"""

# Third Party
from google.protobuf import descriptor as _descriptor
from google.protobuf import message as _message
from google.protobuf import message_factory

# First Party
import alog

# Local
from .messages import deserialize

log = alog.use_channel("DYNMS")


def new_dynamic_message(descriptor: _descriptor.Descriptor) -> _message.Message:
    """Create an empty message whose layout is driven by the descriptor

    Args:
        descriptor:  descriptor.Descriptor
            The message descriptor, typically resolved from a descriptor set

    Returns:
        message:  message.Message
            An empty instance of a message class built for the descriptor
    """
    log.debug2("Building dynamic message class for %s", descriptor.full_name)
    return message_factory.GetMessageClass(descriptor)()


def parse_dynamic_message(
    descriptor: _descriptor.Descriptor, data: bytes
) -> _message.Message:
    """Create a dynamic message for the descriptor and populate it from the
    binary data

    Raises:
        DecodeError if the data is truncated or malformed
    """
    return deserialize(data, new_dynamic_message(descriptor))
