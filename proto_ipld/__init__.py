"""
This library binds python values and protobuf messages to IPLD schemas and
encodes them as DAG-JSON. Protobuf messages can be rebuilt dynamically from a
binary descriptor set and given an explicit schema translated from their
descriptor.

References:
* https://ipld.io/docs/schemas/
* https://ipld.io/specs/codecs/dag-json/spec/
* https://developers.google.com/protocol-buffers

Example:

```
import sys
import proto_ipld

type_system = proto_ipld.load_schema('''
    type Person struct {
        Name    String
        Age     optional Int
    }
''')
node = proto_ipld.wrap({"Name": "Michael"}, type_system.type_by_name("Person"))
proto_ipld.dagjson.encode(node, sys.stdout)

descriptor = proto_ipld.load_message_descriptor(
    "descriptor.pb", "person.proto", "Person"
)
message = proto_ipld.parse_dynamic_message(descriptor, data)
schema = proto_ipld.descriptor_to_schema(descriptor)
proto_ipld.dagjson.encode(proto_ipld.wrap(message, schema.root), sys.stdout)
```
"""

# Local
from . import dagjson
from .bindnode import wrap
from .descriptor_set import (
    build_descriptor_pool,
    find_file_by_path,
    find_message_descriptor,
    load_message_descriptor,
    read_descriptor_set,
)
from .descriptor_to_schema import descriptor_to_schema
from .dynamic import new_dynamic_message, parse_dynamic_message
from .errors import (
    DecodeError,
    EncodeError,
    NotFoundError,
    ProtoIpldError,
    ResolutionError,
    SchemaMismatchError,
    SchemaParseError,
)
from .messages import deserialize, fields_by_number, serialize
from .schema_dsl import load_schema, render_schema
from .schema_infer import infer_schema
