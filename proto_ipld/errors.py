"""
Error types raised by proto_ipld. Every error derives from ProtoIpldError and
from the builtin exception that best describes it so that callers can catch
either.
"""


class ProtoIpldError(Exception):
    """Base class for all proto_ipld errors"""


class SchemaParseError(ProtoIpldError, ValueError):
    """The schema text is malformed or references unknown types"""


class SchemaMismatchError(ProtoIpldError, TypeError):
    """A value does not fit a schema type, or no schema could be inferred"""


class EncodeError(ProtoIpldError, ValueError):
    """A value could not be encoded"""


class DecodeError(ProtoIpldError, ValueError):
    """Serialized content could not be decoded"""


class ResolutionError(ProtoIpldError, ValueError):
    """A descriptor references a file or type that cannot be resolved"""


class NotFoundError(ProtoIpldError, KeyError):
    """A named file, message or type does not exist"""

    def __str__(self) -> str:
        # KeyError quotes its argument by default
        return str(self.args[0]) if self.args else ""
