from __future__ import annotations

import dataclasses
import inspect
import weakref
from collections.abc import Mapping, Sequence, Set
from typing import Any, Union

import numpy as np

from valuedump.capabilities import (
    is_displayable,
    is_error_like,
    is_json_encodable,
    is_nil_reference,
)
from valuedump.document import DocumentEncodingError, EncodedDocument, decode_scalar, encode_document
from valuedump.utils.num import is_byte_array, is_primitive

NormalizedValue = Union[None, bool, int, float, str, np.generic, EncodedDocument]


def dump(value: Any) -> NormalizedValue:
    """
    Normalize an arbitrary value for logs, printing and JSON responses.

    Dispatch order (first match wins):
        1. None / dead weak reference             -> None
        2. primitive scalar, EncodedDocument      -> unchanged
        3. bytes-like                             -> "0x" + lower-case hex
        4. exception                              -> its message
        5. own __str__                            -> str(value)
        6. to_json()                              -> decoded scalar or EncodedDocument
        7. structure (reference, record, sequence, mapping) -> EncodedDocument
           anything else                          -> str(value)

    Never raises for acyclic input; a document that cannot be encoded is
    replaced by the encoder's error message. Cyclic input recurses without
    bound.
    """
    if is_nil_reference(value):
        return None
    if is_primitive(value) or isinstance(value, EncodedDocument):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)) or is_byte_array(value):
        return _hex(value)
    if is_error_like(value):
        return _default_string(value)
    if is_displayable(value):
        return _default_string(value)
    if is_json_encodable(value):
        try:
            encoded = value.to_json()
        except Exception as exc:
            return str(exc)
        try:
            return decode_scalar(encoded)
        except DocumentEncodingError as exc:
            return str(exc)
    return _reflect(value)


def _hex(value: Any) -> str:
    if isinstance(value, np.ndarray):
        return "0x" + value.tobytes().hex()
    return "0x" + bytes(value).hex()


def _default_string(x: Any) -> str:
    try:
        return str(x)
    except Exception:
        try:
            return repr(x)
        except Exception:
            return object.__repr__(x)


def _key(k: NormalizedValue) -> str:
    if isinstance(k, str):
        return k
    if isinstance(k, EncodedDocument):
        return k.text
    if k is None:
        return "null"
    if isinstance(k, (bool, np.bool_)):
        return "true" if k else "false"
    return str(k)


def _document(obj: Any) -> NormalizedValue:
    try:
        return encode_document(obj)
    except DocumentEncodingError as exc:
        return str(exc)


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names


def _declared_fields(value: Any) -> list[tuple[str, Any]] | None:
    cls = value.__class__
    if dataclasses.is_dataclass(cls) and not isinstance(value, type):
        # init=False fields may never have been assigned
        return [(f.name, getattr(value, f.name)) for f in dataclasses.fields(cls) if hasattr(value, f.name)]
    if issubclass(cls, tuple) and hasattr(cls, "_fields"):
        return list(zip(cls._fields, value))
    return None


def _attribute_fields(value: Any) -> list[tuple[str, Any]] | None:
    """Public slots, then public instance attributes, in definition order."""
    if isinstance(value, type) or inspect.ismodule(value) or inspect.isroutine(value):
        return None
    fields: list[tuple[str, Any]] = []
    slots = _slot_names(value.__class__)
    for name in slots:
        if not name.startswith("_") and hasattr(value, name):
            fields.append((name, getattr(value, name)))
    attrs = getattr(value, "__dict__", None)
    if isinstance(attrs, Mapping):
        fields.extend((k, v) for k, v in attrs.items() if isinstance(k, str) and not k.startswith("_"))
    elif not slots:
        return None
    return fields


def _reflect(value: Any) -> NormalizedValue:
    if isinstance(value, weakref.ref):
        return dump(value())

    fields = _declared_fields(value)
    if fields is not None:
        return _document({name: dump(v) for name, v in fields})

    # objects with to_dict
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict) and not isinstance(value, type):
        try:
            data = to_dict()
        except Exception:
            return _default_string(value)
        return dump(data)

    if isinstance(value, Mapping):
        return _document({_key(dump(k)): dump(v) for k, v in value.items()})

    if isinstance(value, np.ndarray) and value.ndim == 0:
        return dump(value[()])
    if isinstance(value, (Sequence, Set, np.ndarray)):
        return _document([dump(v) for v in value])

    fields = _attribute_fields(value)
    if fields is not None:
        return _document({name: dump(v) for name, v in fields})

    return _default_string(value)
