# SPDX-License-Identifier: MIT
"""Storage types for bound parameters and their inference from Python values."""

from __future__ import annotations

from enum import Enum
from typing import Any

__all__ = ["ParamType", "infer_param_type", "normalize_param_id"]


class ParamType(str, Enum):
    """Closed set of storage types a bound value can carry."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"
    BLOB = "blob"

    def coerce(self, value: Any) -> Any:
        """Convert *value* to the Python representation of this storage type."""

        if self is ParamType.NULL:
            return None
        if value is None:
            return None
        if self is ParamType.BOOLEAN:
            return bool(value)
        if self is ParamType.INTEGER:
            return int(value)
        if self is ParamType.BLOB:
            if isinstance(value, str):
                return value.encode("utf-8")
            if isinstance(value, (bytes, bytearray, memoryview)):
                return bytes(value)
            # bytes(5) would silently become five zero bytes.
            raise TypeError(f"cannot store {type(value).__name__} as a blob")
        if isinstance(value, bool):
            # Mirror integer rendering rather than "True"/"False".
            return str(int(value))
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).decode("utf-8")
        return str(value)


def infer_param_type(value: Any) -> ParamType:
    """Pick a storage type from the runtime shape of *value*.

    ``bool`` is checked before ``int`` because it is a subclass of it.
    """

    if value is None:
        return ParamType.NULL
    if isinstance(value, bool):
        return ParamType.BOOLEAN
    if isinstance(value, int):
        return ParamType.INTEGER
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ParamType.BLOB
    return ParamType.STRING


def normalize_param_id(param: int | str) -> int | str:
    """Validate a parameter identifier and strip the ``:`` prefix of named ones."""

    if isinstance(param, bool):
        raise TypeError("parameter identifiers must be int or str, not bool")
    if isinstance(param, int):
        if param < 1:
            raise ValueError(f"positional parameters are 1-based, got {param}")
        return param
    if isinstance(param, str):
        name = param[1:] if param.startswith(":") else param
        if not name:
            raise ValueError("parameter name must not be empty")
        return name
    raise TypeError(f"parameter identifiers must be int or str, not {type(param).__name__}")
