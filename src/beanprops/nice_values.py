"""Harmless default values used to satisfy constructor parameters during NICE instantiation."""
import array
import logging
import numbers
import types
from decimal import Decimal
from fractions import Fraction
from typing import Any, Optional, Union, get_args, get_origin

logger = logging.getLogger(__name__)

# Types whose empty instance stands in for "zero-length array"
ARRAY_TYPES = (list, tuple, array.array)

_NUMERIC_ZEROS = {
    int: 0,
    float: 0.0,
    complex: 0j,
    Decimal: Decimal(0),
    Fraction: Fraction(0),
}


def runtime_class(declared_type: Any) -> Optional[type]:
    """Concrete class behind a declared type (``List[int]`` -> ``list``), or None."""
    if isinstance(declared_type, type):
        return declared_type
    origin = get_origin(declared_type)
    if isinstance(origin, type):
        return origin
    return None


def is_array_type(declared_type: Any) -> bool:
    cls = runtime_class(declared_type)
    return cls is not None and issubclass(cls, ARRAY_TYPES) and not issubclass(cls, (str, bytes))


def _optional_inner(declared_type: Any) -> Optional[Any]:
    """X for Optional[X] / X | None, else None."""
    origin = get_origin(declared_type)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(declared_type) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return None


def nice_value_for(declared_type: Any) -> Any:
    """Manufacture an innocuous value of ``declared_type``.

    Arrays -> empty array of the same type, strings -> "", bytes -> b"",
    bool -> False, numbers -> zero of that exact type. Anything else has no
    defined nice value: a warning is logged and None is substituted.
    """
    inner = _optional_inner(declared_type)
    if inner is not None:
        return nice_value_for(inner)

    cls = runtime_class(declared_type)
    if cls is None:
        logger.warning(f"Unidentified type for nice value: {declared_type!r}, substituting None")
        return None

    if issubclass(cls, array.array):
        # annotations carry no typecode; assume double
        return cls('d')
    if issubclass(cls, ARRAY_TYPES):
        return cls()
    if issubclass(cls, str):
        return cls()
    if issubclass(cls, (bytes, bytearray)):
        return cls()
    # bool is an int subclass, check it first
    if issubclass(cls, bool):
        return False
    for numeric_type, zero in _NUMERIC_ZEROS.items():
        if cls is numeric_type:
            return zero
    if issubclass(cls, numbers.Number):
        try:
            return cls(0)
        except (TypeError, ValueError) as e:
            logger.warning(f"Numeric type {cls.__name__} has no zero value ({e}), substituting None")
            return None

    logger.warning(f"Unidentified type for nice value: {cls.__name__}, substituting None")
    return None
