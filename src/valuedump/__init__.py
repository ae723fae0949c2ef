"""
valuedump

Turns arbitrary runtime values into canonical dump values (scalars, hex
strings, or pre-encoded JSON documents) for logs, printing and JSON wire
responses.
"""

__version__ = "0.1.0"

from .dump import NormalizedValue, dump
from .document import (
    DocumentEncodingError,
    EncodedDocument,
    decode_scalar,
    encode_document,
    encode_payload,
)
from .capabilities import Displayable, ErrorLike, JSONEncodable
