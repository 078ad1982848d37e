"""
Value casting for declared attribute types.

Converts raw scalar values (usually strings from a query string or form,
or JSON scalars) into the type declared for an attribute:
- String "42" -> int 42
- String "12.5" -> float 12.5 / Decimal("12.5")
- String "yes"/"no" -> bool True/False
- ISO-8601 strings -> date, datetime, time
- int/float -> str

Casting never raises for bad input: cast_value returns a CastFailure that
the parse pipeline records against the attribute.
"""

import math
import re
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .errors import DefinitionError


# Same bound CPython applies to int() of a string
MAX_INT_DIGITS = 4300

# "42", "-42.0", "+42.000"
_INTEGRAL_TEXT = re.compile(r"([+-]?\d+)(?:\.0*)?")

TRUE_STRINGS = {"true", "1", "yes", "on", "t", "y"}
FALSE_STRINGS = {"false", "0", "no", "off", "f", "n"}


class CastFailure:
    """
    A value could not be converted to its declared type.

    Attributes:
        message: Human-readable message, e.g. "is not a valid integer"
        value: The raw value that failed
        expected: Name of the declared type
    """

    def __init__(self, message: str, value: Any = None, expected: Optional[str] = None):
        self.message = message
        self.value = value
        self.expected = expected

    def __repr__(self) -> str:
        return f"CastFailure(message={self.message!r}, expected={self.expected!r})"


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    raise TypeError(f"cannot cast {type(value).__name__} to str")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite() or value.adjusted() >= MAX_INT_DIGITS:
            raise ValueError(f"invalid integer: {value!r}")
    if isinstance(value, (float, Decimal)):
        if value != int(value):
            raise ValueError("value has a fractional part")
        return int(value)
    if isinstance(value, str):
        # "42.0" is accepted, "42.5" and exponent forms are not
        match = _INTEGRAL_TEXT.fullmatch(value.strip())
        if match is None:
            raise ValueError(f"invalid integer: {value!r}")
        return int(match.group(1))
    raise TypeError(f"cannot cast {type(value).__name__} to int")


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("bool is not a float")
    if isinstance(value, (int, float, Decimal)):
        result = float(value)
    elif isinstance(value, str):
        result = float(value.strip())
    else:
        raise TypeError(f"cannot cast {type(value).__name__} to float")
    if not math.isfinite(result):
        raise ValueError(f"invalid float: {value!r}")
    return result


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("bool is not a decimal")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"invalid decimal: {value!r}")
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, (float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"invalid decimal: {value!r}")
        if not result.is_finite():
            raise ValueError(f"invalid decimal: {value!r}")
        return result
    raise TypeError(f"cannot cast {type(value).__name__} to Decimal")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lower_val = value.strip().lower()
        if lower_val in TRUE_STRINGS:
            return True
        if lower_val in FALSE_STRINGS:
            return False
    raise ValueError(f"invalid boolean: {value!r}")


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"cannot cast {type(value).__name__} to date")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except OSError as e:
            raise ValueError(f"timestamp out of range: {e}")
    raise TypeError(f"cannot cast {type(value).__name__} to datetime")


def _to_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        return time.fromisoformat(value.strip())
    raise TypeError(f"cannot cast {type(value).__name__} to time")


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        return uuid.UUID(value.strip())
    raise TypeError(f"cannot cast {type(value).__name__} to UUID")


def _to_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    raise TypeError(f"cannot cast {type(value).__name__} to list")


def _to_dict(value: Any) -> dict:
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"cannot cast {type(value).__name__} to dict")


Caster = Callable[[Any], Any]

# declared type -> (canonical name, caster, failure message)
_CASTERS: Dict[type, Tuple[str, Caster, str]] = {
    str: ("string", _to_str, "is not a valid string"),
    int: ("integer", _to_int, "is not a valid integer"),
    float: ("float", _to_float, "is not a valid float"),
    Decimal: ("decimal", _to_decimal, "is not a valid decimal"),
    bool: ("boolean", _to_bool, "is not a valid boolean"),
    date: ("date", _to_date, "is not a valid date"),
    datetime: ("datetime", _to_datetime, "is not a valid datetime"),
    time: ("time", _to_time, "is not a valid time"),
    uuid.UUID: ("uuid", _to_uuid, "is not a valid uuid"),
    list: ("array", _to_list, "is not a valid array"),
    dict: ("hash", _to_dict, "is not a valid hash"),
}

# Type names accepted by declarative definitions (matched case-insensitively)
TYPE_NAMES: Dict[str, type] = {
    "str": str,
    "string": str,
    "text": str,
    "int": int,
    "integer": int,
    "float": float,
    "decimal": Decimal,
    "bigdecimal": Decimal,
    "bool": bool,
    "boolean": bool,
    "date": date,
    "datetime": datetime,
    "time": time,
    "uuid": uuid.UUID,
    "list": list,
    "array": list,
    "dict": dict,
    "hash": dict,
    "mapping": dict,
}


def register_caster(
    declared_type: type,
    caster: Caster,
    name: Optional[str] = None,
    message: Optional[str] = None,
) -> None:
    """
    Register a cast function for a custom type.

    The caster receives the raw value and returns the converted value,
    raising ValueError or TypeError when conversion is impossible.
    Registration is meant to happen at import time, before definitions
    using the type are parsed.

    Args:
        declared_type: Type used in ``requires``/``accepts``
        caster: Conversion function
        name: Name usable in declarative definitions (default: lowercased class name)
        message: Failure message (default: "is not a valid <name>")

    Example:
        >>> register_caster(Money, Money.parse, name="money")
    """
    if not isinstance(declared_type, type):
        raise DefinitionError(f"Cannot register caster for non-type {declared_type!r}")
    type_name = (name or declared_type.__name__).lower()
    _CASTERS[declared_type] = (
        type_name,
        caster,
        message or f"is not a valid {type_name}",
    )
    TYPE_NAMES[type_name] = declared_type


def resolve_type(declared: Union[str, type]) -> type:
    """
    Resolve a declared type or type name to a Python type.

    Raises:
        DefinitionError: If the name is unknown or the value is not a type
    """
    if isinstance(declared, str):
        try:
            return TYPE_NAMES[declared.strip().lower()]
        except KeyError:
            valid = ", ".join(sorted(TYPE_NAMES))
            raise DefinitionError(f"Unknown type '{declared}'. Must be one of: {valid}")
    if isinstance(declared, type):
        return declared
    raise DefinitionError(f"Invalid type {declared!r}: must be a type or a type name")


def type_name(declared_type: type) -> str:
    """Canonical name of a declared type, as used in declarative definitions."""
    entry = _CASTERS.get(declared_type)
    if entry is not None:
        return entry[0]
    return declared_type.__name__.lower()


def dump_value(value: Any) -> Any:
    """
    Plain YAML/JSON form of a declared value.

    Decimal, UUID and temporal values become their canonical strings, which
    cast back to the same value through the declared type.
    """
    if isinstance(value, (Decimal, uuid.UUID, date, time)):
        return _to_str(value)
    if isinstance(value, (list, tuple)):
        return [dump_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): dump_value(item) for key, item in value.items()}
    return value


def _strict_accepts(value: Any, declared_type: type) -> bool:
    if isinstance(value, bool) and declared_type is not bool:
        return False
    if declared_type in (float, Decimal) and isinstance(value, int):
        return True
    if declared_type is date and isinstance(value, datetime):
        return False
    return isinstance(value, declared_type)


def cast_value(
    value: Any,
    declared_type: type,
    strict: bool = False,
) -> Tuple[Any, Optional[CastFailure]]:
    """
    Cast a raw value to a declared type.

    Returns tuple of (casted_value, failure). ``failure`` is None on
    success; on failure ``casted_value`` is the untouched raw value.

    Args:
        value: Raw value (never None, absence is handled by the caller)
        declared_type: Python type the attribute was declared with
        strict: Only accept values already of the declared type

    Example:
        >>> cast_value("42", int)
        (42, None)
        >>> cast_value("abc", int)
        ('abc', CastFailure(message='is not a valid integer', expected='integer'))
    """
    entry = _CASTERS.get(declared_type)
    if entry is None:
        name = declared_type.__name__.lower()
        caster: Caster = declared_type
        message = f"is not a valid {name}"
    else:
        name, caster, message = entry

    if strict:
        if not _strict_accepts(value, declared_type):
            return value, CastFailure(message, value=value, expected=name)
        if declared_type not in (float, Decimal):
            return value, None
        # float and Decimal still go through the caster to widen ints
        # and reject non-finite numbers
    elif entry is None and isinstance(value, declared_type):
        return value, None

    try:
        return caster(value), None
    except (ValueError, TypeError, ArithmeticError):
        return value, CastFailure(message, value=value, expected=name)
