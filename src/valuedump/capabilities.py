from __future__ import annotations

import weakref
from typing import Any, Protocol, runtime_checkable

import numpy as np
import pandas as pd

# numpy / pandas containers render a truncated pretty-print from __str__;
# they are aggregates, not display values.
_AGGREGATES: tuple[type, ...] = (np.ndarray, pd.Series, pd.DataFrame)


@runtime_checkable
class ErrorLike(Protocol):
    """
    Error capability contract.

    Satisfied by exceptions; the diagnostic message is ``str(exc)``.
    Descriptive only: dispatch goes through ``is_error_like``.
    """

    args: tuple[Any, ...]

    def with_traceback(self, tb: Any, /) -> Any:
        ...


@runtime_checkable
class Displayable(Protocol):
    """
    Display capability contract.

    Every Python object has ``__str__``; a value only counts as Displayable
    when its class provides its own rendering. Descriptive only: dispatch
    goes through ``is_displayable``.
    """

    def __str__(self) -> str:
        ...


@runtime_checkable
class JSONEncodable(Protocol):
    """
    JSON capability contract.

    ``to_json()`` returns the value's own JSON encoding as text or bytes.
    pandas Series / DataFrame satisfy it out of the box. Descriptive only:
    dispatch goes through ``is_json_encodable``, which also sees through
    live weak proxies.
    """

    def to_json(self) -> str | bytes:
        ...


def _is_proxy(x: Any) -> bool:
    # type() does not forward through a proxy, isinstance() does.
    return type(x) in weakref.ProxyTypes


def is_nil_reference(x: Any) -> bool:
    """
    True for None and for weak references / proxies whose referent is gone.

    Never touches a capability of the value, so it is safe on proxies that
    nominally satisfy one.
    """
    if x is None:
        return True
    if _is_proxy(x):
        try:
            x.__class__
        except ReferenceError:
            return True
        return False
    if isinstance(x, weakref.ref):
        return x() is None
    return False


def is_error_like(x: Any) -> bool:
    return isinstance(x, BaseException)


def is_displayable(x: Any) -> bool:
    cls = x.__class__
    if isinstance(x, type) or issubclass(cls, _AGGREGATES):
        return False
    return cls.__str__ is not object.__str__


def is_json_encodable(x: Any) -> bool:
    # plain getattr: a live proxy forwards attribute lookup to its referent
    if isinstance(x, type):
        return False
    return callable(getattr(x, "to_json", None))
