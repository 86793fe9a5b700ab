"""
DAG-JSON codec for the IPLD data model.

The encoder walks a node's representation and writes compact JSON to a sink
as it goes. Map keys are written in RFC 7049 canonical order (shorter keys
first, then bytewise) unless sort_keys=False is given, in which case the
representation's own order (schema field order for structs) is kept. Bytes
are written as {"/":{"bytes":"<base64>"}}.

Links are not supported.

Reference: https://ipld.io/specs/codecs/dag-json/spec/
"""

# Standard
from typing import Any, Iterable, Tuple, Union
import base64
import io
import json
import math

# First Party
import alog

# Local
from .errors import DecodeError, EncodeError
from .schema import Kind

log = alog.use_channel("DAGJS")


## Interface ###################################################################


def encode(node: Any, stream: Any, *, sort_keys: bool = True):
    """Encode a node to the given output stream

    Args:
        node:  Any
            A typed Node (its representation is encoded), a representation
            node, or plain data model values (dict, list, str, int, float,
            bool, bytes, None)
        stream:  Any
            A writable stream. Binary io streams and files opened in a "b"
            mode receive UTF-8 bytes, anything else receives str

    Kwargs:
        sort_keys:  bool
            Whether to sort map keys in canonical order

    Raises:
        EncodeError if a value cannot be represented in DAG-JSON
    """
    binary = _is_binary_stream(stream)

    def write(chunk: str):
        stream.write(chunk.encode("utf-8") if binary else chunk)

    if hasattr(node, "representation"):
        node = node.representation()
    _Encoder(write, sort_keys).encode(node)


def encode_bytes(node: Any, *, sort_keys: bool = True) -> bytes:
    """Encode a node to a byte string"""
    buffer = io.BytesIO()
    encode(node, buffer, sort_keys=sort_keys)
    return buffer.getvalue()


def decode(data: Union[str, bytes]) -> Any:
    """Decode DAG-JSON into plain data model values

    Args:
        data:  Union[str, bytes]
            The serialized DAG-JSON

    Returns:
        value:  Any
            dicts, lists, str, int, float, bool, bytes and None

    Raises:
        DecodeError if the content is not valid DAG-JSON
    """
    try:
        return json.loads(
            data,
            object_hook=_decode_special_map,
            parse_constant=_reject_constant,
        )
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise DecodeError(f"Invalid DAG-JSON: {err}") from err


## Implementation Details ######################################################


def _is_binary_stream(stream: Any) -> bool:
    """Binary sinks are io binary streams or files opened in a "b" mode. Any
    other writable is treated as a text sink.
    """
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(stream, "mode", None)
    return isinstance(mode, str) and "b" in mode


def _canonical_key(key: str) -> Tuple[int, bytes]:
    key_bytes = key.encode("utf-8")
    return len(key_bytes), key_bytes


def _encode_bytes_value(value: bytes) -> str:
    return base64.b64encode(bytes(value)).decode("ascii").rstrip("=")


class _Encoder:
    """Walks nodes or plain values, writing JSON tokens as it goes"""

    def __init__(self, write, sort_keys: bool):
        self.write = write
        self.sort_keys = sort_keys

    def encode(self, value: Any):
        if hasattr(value, "kind"):
            self._encode_node(value)
        else:
            self._encode_plain(value)

    def _encode_node(self, node: Any):
        kind = node.kind
        if kind == Kind.MAP:
            self._encode_map(node.items())
        elif kind == Kind.LIST:
            self._encode_list(node.elements())
        else:
            self._encode_scalar(node.as_value())

    def _encode_plain(self, value: Any):
        if isinstance(value, dict):
            for key in value:
                if not isinstance(key, str):
                    raise EncodeError(f"Map key {key!r} is not a string")
            self._encode_map(value.items())
        elif isinstance(value, (list, tuple)):
            self._encode_list(value)
        else:
            self._encode_scalar(value)

    def _encode_map(self, items: Iterable[Tuple[str, Any]]):
        if self.sort_keys:
            items = sorted(items, key=lambda item: _canonical_key(item[0]))
        self.write("{")
        for index, (key, value) in enumerate(items):
            if index:
                self.write(",")
            self.write(json.dumps(key, ensure_ascii=False))
            self.write(":")
            self.encode(value)
        self.write("}")

    def _encode_list(self, values: Iterable[Any]):
        self.write("[")
        for index, value in enumerate(values):
            if index:
                self.write(",")
            self.encode(value)
        self.write("]")

    def _encode_scalar(self, value: Any):
        if value is None or isinstance(value, (bool, str, int)):
            self.write(json.dumps(value, ensure_ascii=False))
        elif isinstance(value, float):
            if not math.isfinite(value):
                raise EncodeError(f"Cannot encode non-finite float {value}")
            self.write(json.dumps(value))
        elif isinstance(value, (bytes, bytearray, memoryview)):
            self.write('{"/":{"bytes":')
            self.write(json.dumps(_encode_bytes_value(value)))
            self.write("}}")
        else:
            raise EncodeError(f"Cannot encode value of type {type(value).__name__}")


def _decode_special_map(obj: dict) -> Any:
    if "/" not in obj:
        return obj
    inner = obj["/"]
    if len(obj) == 1 and isinstance(inner, dict) and list(inner) == ["bytes"]:
        encoded = inner["bytes"]
        if not isinstance(encoded, str):
            raise DecodeError("Bytes value must be a base64 string")
        padded = encoded + "=" * (-len(encoded) % 4)
        try:
            return base64.b64decode(padded, validate=True)
        except ValueError as err:
            raise DecodeError(f"Invalid base64 bytes: {encoded}") from err
    if len(obj) == 1 and isinstance(inner, str):
        raise DecodeError("Links are not supported")
    log.debug3("Map with reserved key '/' kept as a plain map")
    return obj


def _reject_constant(name: str):
    raise DecodeError(f"Non-finite number {name} is not valid DAG-JSON")
