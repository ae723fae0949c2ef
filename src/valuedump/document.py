from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from valuedump.utils.num import to_native


class DocumentEncodingError(ValueError):
    """A structure could not be rendered as (or read back from) JSON."""


class EncodedDocument(bytes):
    """
    Pre-serialized, valid UTF-8 JSON (usually ``{...}`` or ``[...]``).

    Embedded verbatim by ``encode_payload`` instead of being re-encoded.
    Compares equal to the plain bytes it wraps.
    """

    __slots__ = ()

    @property
    def text(self) -> str:
        return self.decode("utf-8")

    def loads(self) -> Any:
        return json.loads(self.text)

    def __repr__(self) -> str:
        return f"EncodedDocument({self.text!r})"


def _reject_constant(name: str) -> Any:
    raise DocumentEncodingError(f"non-standard JSON constant: {name}")


def _encode(obj: Any, *, raw_documents: bool) -> str:
    if isinstance(obj, EncodedDocument):
        text = obj.text
        return text if raw_documents else json.dumps(text, ensure_ascii=False)
    if isinstance(obj, Mapping):
        items = []
        for k, v in obj.items():
            if not isinstance(k, str):
                raise DocumentEncodingError(f"keys must be str, not {type(k).__name__}")
            items.append(json.dumps(k, ensure_ascii=False) + ":" + _encode(v, raw_documents=raw_documents))
        return "{" + ",".join(items) + "}"
    if isinstance(obj, (list, tuple)):
        return "[" + ",".join(_encode(v, raw_documents=raw_documents) for v in obj) + "]"
    try:
        return json.dumps(to_native(obj), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise DocumentEncodingError(str(exc)) from exc


def encode_document(obj: Any) -> EncodedDocument:
    """
    Encode a structure of already-normalized values as compact JSON.

    Nested EncodedDocuments are embedded verbatim. Non-finite floats and
    values the JSON encoder does not know raise DocumentEncodingError, as
    do strings that are not valid UTF-8 (lone surrogates).
    """
    text = _encode(obj, raw_documents=True)
    try:
        return EncodedDocument(text.encode("utf-8"))
    except UnicodeEncodeError as exc:
        raise DocumentEncodingError(str(exc)) from exc


def encode_payload(obj: Any, *, raw_documents: bool = True) -> str:
    """
    Serialize a wire/log payload built from normalized values.

    With ``raw_documents=False`` every EncodedDocument is written as a JSON
    string holding its text instead of as an embedded object/array.
    """
    return _encode(obj, raw_documents=raw_documents)


def decode_scalar(raw: str | bytes | bytearray) -> Any:
    """
    Decode a value's own JSON encoding.

    Bare strings, booleans and numbers come back as native scalars; integer
    literals stay ``int`` (``42`` is never ``42.0``). Objects, arrays and
    ``null`` are returned unchanged as an EncodedDocument.
    """
    try:
        text = bytes(raw).decode("utf-8") if isinstance(raw, (bytes, bytearray)) else str(raw)
        value = json.loads(text, parse_constant=_reject_constant)
    except DocumentEncodingError:
        raise
    except ValueError as exc:
        raise DocumentEncodingError(f"invalid JSON encoding: {exc}") from exc
    if value is None or isinstance(value, (dict, list)):
        return EncodedDocument(text.encode("utf-8"))
    return value
