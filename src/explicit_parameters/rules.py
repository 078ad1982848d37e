"""
Validation Rules for declared attributes.

A rule is any callable taking the casted value and returning zero or more
human-readable failure messages. Built-in rules cover the usual checks
and are declared through keyword options on ``requires``/``accepts``:

    p.requires("id", int, numericality={"greater_than": 0})
    p.accepts("code", str, length={"is": 3}, format=r"^[A-Z]+$")
    p.accepts("role", str, inclusion=["admin", "member"])
    p.accepts("meta", dict, json_schema={"type": "object"})
    p.accepts("slug", str, validate=lambda v: None if v.islower() else "must be lowercase")

Options are checked when the definition is built; an unknown option or a
malformed option value raises DefinitionError immediately.
"""

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from .errors import DefinitionError


class ValidationRule(Protocol):
    """Anything that accepts a casted value and returns failure messages."""

    def __call__(self, value: Any) -> Iterable[str]:
        ...


def _format_count(count: Any) -> str:
    if isinstance(count, float) and count.is_integer():
        return str(int(count))
    return str(count)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def _as_number(value: Any) -> Optional[Any]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def _parity(number: Any) -> int:
    # Integral Decimals with a positive exponent are multiples of ten
    if isinstance(number, Decimal) and number.as_tuple().exponent > 0:
        return 0
    return int(number) % 2


def _comparable(number: Any, count: Any) -> Tuple[Any, Any]:
    # Decimal and float do not compare reliably, widen both to Decimal
    if isinstance(number, Decimal) or isinstance(count, Decimal):
        return Decimal(str(number)), Decimal(str(count))
    return number, count


@dataclass(frozen=True)
class Numericality:
    """
    Numeric comparisons.

    Messages:
        is not a number
        must be an integer
        must be greater than N / greater than or equal to N
        must be equal to N / other than N
        must be less than N / less than or equal to N
        must be odd / must be even
    """

    greater_than: Optional[Any] = None
    greater_than_or_equal_to: Optional[Any] = None
    equal_to: Optional[Any] = None
    other_than: Optional[Any] = None
    less_than: Optional[Any] = None
    less_than_or_equal_to: Optional[Any] = None
    only_integer: bool = False
    odd: bool = False
    even: bool = False
    message: Optional[str] = None

    CHECKS = (
        ("greater_than", lambda v, c: v > c, "must be greater than {count}"),
        ("greater_than_or_equal_to", lambda v, c: v >= c, "must be greater than or equal to {count}"),
        ("equal_to", lambda v, c: v == c, "must be equal to {count}"),
        ("other_than", lambda v, c: v != c, "must be other than {count}"),
        ("less_than", lambda v, c: v < c, "must be less than {count}"),
        ("less_than_or_equal_to", lambda v, c: v <= c, "must be less than or equal to {count}"),
    )

    def __call__(self, value: Any) -> List[str]:
        number = _as_number(value)
        if number is None:
            return [self.message or "is not a number"]

        is_integral = not isinstance(number, float) or number.is_integer()
        if isinstance(number, Decimal):
            is_integral = number == number.to_integral_value()
        if self.only_integer and not is_integral:
            return [self.message or "must be an integer"]

        errors: List[str] = []
        for option, check, template in self.CHECKS:
            count = getattr(self, option)
            if count is None:
                continue
            left, right = _comparable(number, count)
            if not check(left, right):
                errors.append(self.message or template.format(count=_format_count(count)))

        if self.odd and not (is_integral and _parity(number) == 1):
            errors.append(self.message or "must be odd")
        if self.even and not (is_integral and _parity(number) == 0):
            errors.append(self.message or "must be even")
        return errors


@dataclass(frozen=True)
class Length:
    """
    Length bounds for strings and collections.

    Values without a length are measured by their string form.
    """

    minimum: Optional[int] = None
    maximum: Optional[int] = None
    exactly: Optional[int] = None
    message: Optional[str] = None

    def __call__(self, value: Any) -> List[str]:
        try:
            size = len(value)
        except TypeError:
            size = len(str(value))

        errors: List[str] = []
        if self.exactly is not None and size != self.exactly:
            errors.append(
                self.message or f"is the wrong length (should be {self.exactly} characters)"
            )
        if self.minimum is not None and size < self.minimum:
            errors.append(self.message or f"is too short (minimum is {self.minimum} characters)")
        if self.maximum is not None and size > self.maximum:
            errors.append(self.message or f"is too long (maximum is {self.maximum} characters)")
        return errors


@dataclass(frozen=True)
class Format:
    """Regular expression match (``with``) or non-match (``without``)."""

    pattern: re.Pattern
    negate: bool = False
    message: Optional[str] = None

    def __call__(self, value: Any) -> List[str]:
        matched = self.pattern.search(str(value)) is not None
        if matched == self.negate:
            return [self.message or "is invalid"]
        return []


@dataclass(frozen=True)
class Inclusion:
    """Value must be one of the allowed values."""

    allowed: Any
    message: Optional[str] = None

    def __call__(self, value: Any) -> List[str]:
        if value not in self.allowed:
            return [self.message or "is not included in the list"]
        return []


@dataclass(frozen=True)
class Exclusion:
    """Value must not be one of the reserved values."""

    reserved: Any
    message: Optional[str] = None

    def __call__(self, value: Any) -> List[str]:
        if value in self.reserved:
            return [self.message or "is reserved"]
        return []


@dataclass(frozen=True)
class Presence:
    """Value must not be blank (empty or whitespace-only)."""

    message: Optional[str] = None

    def __call__(self, value: Any) -> List[str]:
        if _is_blank(value):
            return [self.message or "can't be blank"]
        return []


@dataclass(frozen=True)
class JsonSchema:
    """
    Validate a value against a JSON Schema (Draft 2020-12).

    Each schema violation becomes one message; violations below the root
    are prefixed with their location.
    """

    schema: Dict[str, Any]
    message: Optional[str] = None
    validator: Draft202012Validator = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            Draft202012Validator.check_schema(self.schema)
        except SchemaError as e:
            raise DefinitionError(f"Invalid json_schema: {e.message}")
        object.__setattr__(self, "validator", Draft202012Validator(self.schema))

    def __call__(self, value: Any) -> List[str]:
        errors = sorted(
            self.validator.iter_errors(value),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        if errors and self.message:
            return [self.message]
        messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path)
            messages.append(f"{path}: {error.message}" if path else error.message)
        return messages


@dataclass(frozen=True)
class Callback:
    """
    Wrap a plain function as a rule.

    The function may return None (valid), a single message, or an
    iterable of messages.
    """

    func: Callable[[Any], Any]

    def __call__(self, value: Any) -> List[str]:
        result = self.func(value)
        if result is None or result is True:
            return []
        if result is False:
            return ["is invalid"]
        if isinstance(result, str):
            return [result]
        return [str(message) for message in result]


def _options_dict(option: str, config: Any, shorthand: Optional[str] = None) -> Dict[str, Any]:
    if isinstance(config, dict):
        return dict(config)
    if shorthand is not None:
        return {shorthand: config}
    raise DefinitionError(f"Invalid {option} options {config!r}: must be a dict")


def _pop_message(option: str, options: Dict[str, Any]) -> Optional[str]:
    message = options.pop("message", None)
    if message is not None and not isinstance(message, str):
        raise DefinitionError(f"Invalid {option} message {message!r}: must be a string")
    return message


def _reject_unknown(option: str, options: Dict[str, Any]) -> None:
    if options:
        raise DefinitionError(f"Unknown {option} options: {sorted(options)}")


def _build_numericality(config: Any) -> Numericality:
    options = {} if config is True else _options_dict("numericality", config)
    message = _pop_message("numericality", options)
    kwargs: Dict[str, Any] = {}
    for option, _, _ in Numericality.CHECKS:
        if option in options:
            count = options.pop(option)
            # Numeric strings ("0.5") come from dumped Decimal bounds
            number = _as_number(count)
            if number is None:
                raise DefinitionError(f"numericality {option} must be a number, got {count!r}")
            kwargs[option] = number
    for flag in ("only_integer", "odd", "even"):
        if flag in options:
            kwargs[flag] = bool(options.pop(flag))
    _reject_unknown("numericality", options)
    return Numericality(message=message, **kwargs)


def _length_bound(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DefinitionError(f"length {name} must be a non-negative integer, got {value!r}")
    return value


def _build_length(config: Any) -> Length:
    options = _options_dict("length", config)
    message = _pop_message("length", options)
    minimum = options.pop("minimum", None)
    maximum = options.pop("maximum", None)
    exactly = options.pop("is", None)
    within = options.pop("in", options.pop("within", None))
    if within is not None:
        if isinstance(within, range):
            minimum, maximum = within.start, within.stop - 1
        elif isinstance(within, (list, tuple)) and len(within) == 2:
            minimum, maximum = within
        else:
            raise DefinitionError(f"length in must be a range or [min, max], got {within!r}")
    _reject_unknown("length", options)
    return Length(
        minimum=None if minimum is None else _length_bound("minimum", minimum),
        maximum=None if maximum is None else _length_bound("maximum", maximum),
        exactly=None if exactly is None else _length_bound("is", exactly),
        message=message,
    )


def _compile(pattern: Any) -> re.Pattern:
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        raise DefinitionError(f"format pattern must be a string, got {pattern!r}")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise DefinitionError(f"Invalid regex pattern {pattern!r}: {e}")


def _build_format(config: Any) -> Format:
    options = _options_dict("format", config, shorthand="with") if not isinstance(config, re.Pattern) else {"with": config}
    message = _pop_message("format", options)
    if "with" in options and "without" in options:
        raise DefinitionError("format accepts either 'with' or 'without', not both")
    if "with" in options:
        rule = Format(_compile(options.pop("with")), negate=False, message=message)
    elif "without" in options:
        rule = Format(_compile(options.pop("without")), negate=True, message=message)
    else:
        raise DefinitionError("format requires a 'with' or 'without' pattern")
    _reject_unknown("format", options)
    return rule


def _collection(option: str, config: Any) -> Tuple[Any, Optional[str]]:
    options = _options_dict(option, config, shorthand="in")
    message = _pop_message(option, options)
    values = options.pop("in", options.pop("within", None))
    _reject_unknown(option, options)
    if isinstance(values, range):
        return values, message
    if isinstance(values, (list, tuple, set, frozenset)):
        return tuple(values), message
    raise DefinitionError(f"{option} requires a list of values, got {values!r}")


def _build_callbacks(config: Any) -> List[Callback]:
    funcs: Sequence[Any] = config if isinstance(config, (list, tuple)) else [config]
    for func in funcs:
        if not callable(func):
            raise DefinitionError(f"validate expects callables, got {func!r}")
    return [Callback(func) for func in funcs]


def _build_json_schema(config: Any) -> JsonSchema:
    if not isinstance(config, dict):
        raise DefinitionError(f"json_schema must be a dict, got {config!r}")
    # {"schema": {...}, "message": "..."} wraps a schema with a custom message
    if "schema" in config and set(config) <= {"schema", "message"}:
        options = dict(config)
        message = _pop_message("json_schema", options)
        schema = options.pop("schema")
        if not isinstance(schema, dict):
            raise DefinitionError(f"json_schema schema must be a dict, got {schema!r}")
        return JsonSchema(schema, message=message)
    return JsonSchema(config)


def build_rules(options: Dict[str, Any]) -> Tuple[ValidationRule, ...]:
    """
    Convert declaration options into validation rules.

    Options set to None or False are ignored, so rules can be toggled
    from configuration.

    Args:
        options: Keyword options given to ``requires``/``accepts``
            (``default`` already removed)

    Returns:
        Tuple of rules, in option order

    Raises:
        DefinitionError: On unknown options or malformed option values
    """
    rules: List[ValidationRule] = []
    for option, config in options.items():
        if config is None or config is False:
            continue
        if option == "numericality":
            rules.append(_build_numericality(config))
        elif option == "length":
            rules.append(_build_length(config))
        elif option == "format":
            rules.append(_build_format(config))
        elif option == "inclusion":
            allowed, message = _collection("inclusion", config)
            rules.append(Inclusion(allowed, message=message))
        elif option == "exclusion":
            reserved, message = _collection("exclusion", config)
            rules.append(Exclusion(reserved, message=message))
        elif option == "presence":
            message = config.get("message") if isinstance(config, dict) else None
            rules.append(Presence(message=message))
        elif option == "json_schema":
            rules.append(_build_json_schema(config))
        elif option == "validate":
            rules.extend(_build_callbacks(config))
        else:
            raise DefinitionError(
                f"Unknown validation option '{option}'. Must be one of: "
                "numericality, length, format, inclusion, exclusion, presence, json_schema, validate"
            )
    return tuple(rules)


def run_rules(rules: Iterable[ValidationRule], value: Any) -> List[str]:
    """Apply every rule to a value and collect all messages."""
    messages: List[str] = []
    for rule in rules:
        messages.extend(rule(value) or ())
    return messages


def describe_rule(rule: ValidationRule) -> Optional[Tuple[str, Any]]:
    """
    Express a built-in rule as its declaration option.

    Returns None for rules that cannot be written declaratively
    (callbacks and third-party rules).
    """
    if isinstance(rule, Numericality):
        config = {
            option: getattr(rule, option)
            for option, _, _ in Numericality.CHECKS
            if getattr(rule, option) is not None
        }
        for flag in ("only_integer", "odd", "even"):
            if getattr(rule, flag):
                config[flag] = True
        return "numericality", _with_message(config or True, rule.message)
    if isinstance(rule, Length):
        config = {}
        if rule.minimum is not None:
            config["minimum"] = rule.minimum
        if rule.maximum is not None:
            config["maximum"] = rule.maximum
        if rule.exactly is not None:
            config["is"] = rule.exactly
        return "length", _with_message(config, rule.message)
    if isinstance(rule, Format):
        key = "without" if rule.negate else "with"
        return "format", _with_message({key: rule.pattern.pattern}, rule.message)
    if isinstance(rule, Inclusion):
        return "inclusion", _with_message({"in": list(rule.allowed)}, rule.message)
    if isinstance(rule, Exclusion):
        return "exclusion", _with_message({"in": list(rule.reserved)}, rule.message)
    if isinstance(rule, Presence):
        return "presence", _with_message(True, rule.message)
    if isinstance(rule, JsonSchema):
        if rule.message is None:
            return "json_schema", rule.schema
        return "json_schema", {"schema": rule.schema, "message": rule.message}
    return None


def _with_message(config: Any, message: Optional[str]) -> Any:
    if message is None:
        return config
    if config is True:
        config = {}
    return {**config, "message": message}
