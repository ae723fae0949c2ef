from __future__ import annotations

from typing import Any

import numpy as np

_NUMPY_SCALARS = (np.bool_, np.integer, np.floating)


def is_primitive(x: Any) -> bool:
    """
    True for scalars that pass through normalization unchanged.

    Accepts:
    - Python bool / int / float / str (and subclasses such as IntEnum, StrEnum)
    - numpy bool_ / integer / floating scalars of any width
    """
    return isinstance(x, (bool, int, float, str)) or isinstance(x, _NUMPY_SCALARS)


def is_byte_array(x: Any) -> bool:
    return isinstance(x, np.ndarray) and x.ndim == 1 and x.dtype == np.uint8


def to_native(x: Any) -> Any:
    """
    Convert a numpy scalar to the equivalent Python scalar.

    Everything else is returned as-is. Used only at encode time; the
    normalized value itself keeps its numpy width.
    """
    if isinstance(x, _NUMPY_SCALARS):
        return x.item()
    return x
