"""
Static protobuf model used by the demo
"""

# Local
from .person import (
    DEFAULT_DESCRIPTOR_SET,
    PERSON_FILE_PROTO,
    PERSON_PROTO_FILE,
    Person,
    write_descriptor_set,
)
