# src/mydbd/types.py
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Union

from .errors import InvalidArgumentError, TypeMismatchError


class FetchMode(IntEnum):
    """Shape in which a result row is materialized."""
    ORDERED = 1
    ASSOC = 2
    OBJECT = 3
    COLUMN = 4

    @classmethod
    def coerce(cls, mode: Union['FetchMode', int]) -> 'FetchMode':
        """Validate a fetch mode given as enum member or plain integer."""
        if isinstance(mode, bool) or not isinstance(mode, int):
            raise InvalidArgumentError(f"Invalid fetch mode: {mode!r}")
        try:
            return cls(mode)
        except ValueError:
            raise InvalidArgumentError(f"Invalid fetch mode: {mode!r}") from None


class ParamType(str, Enum):
    """Wire type used to bind a prepared statement parameter."""
    STRING = 'string'
    INTEGER = 'integer'
    DOUBLE = 'double'
    BLOB = 'blob'

    @classmethod
    def coerce(cls, hint: Union['ParamType', str]) -> 'ParamType':
        try:
            return cls(hint)
        except ValueError:
            raise TypeMismatchError(f"Unknown parameter type: {hint!r}") from None


def infer_param_type(value: Any) -> ParamType:
    """Guess the binding type of a parameter from its Python type.

    bool counts as an integer, as MySQL stores booleans in TINYINT(1).
    """
    if isinstance(value, int):
        return ParamType.INTEGER
    if isinstance(value, float):
        return ParamType.DOUBLE
    return ParamType.STRING


def coerce_param(value: Any, param_type: ParamType) -> Any:
    """Convert a value to the wire representation of ``param_type``.

    NULL is passed through untouched whatever the binding type.

    Raises:
        TypeMismatchError: If the value can't be represented as ``param_type``.
    """
    if value is None:
        return None

    try:
        if param_type is ParamType.INTEGER:
            if isinstance(value, (str, bytes, Decimal)):
                return int(float(value))
            return int(value)
        if param_type is ParamType.DOUBLE:
            return float(value)
        if param_type is ParamType.BLOB:
            if isinstance(value, (bytes, bytearray)):
                return bytes(value)
            return str(value).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise TypeMismatchError(
            f"Cannot bind {value!r} as {param_type.value}: {e}"
        ) from e

    if isinstance(value, (bytes, bytearray, str)):
        return value
    if isinstance(value, bool):
        return str(int(value))
    return str(value)
