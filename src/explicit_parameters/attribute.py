"""
Attribute: a single declared field of a parameters definition.
"""

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from .casting import dump_value, type_name
from .rules import ValidationRule, describe_rule

if TYPE_CHECKING:
    from .definition import ParametersDefinition


class _Missing:
    """Sentinel for "no default declared"."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Attribute:
    """
    Declaration of one attribute.

    Exactly one of the following shapes applies:
    - scalar: ``type`` is set, ``definition`` is None
    - untyped: neither ``type`` nor ``definition`` is set (raw value kept)
    - nested: ``definition`` is set, ``many`` is False
    - array of nested: ``definition`` is set, ``many`` is True

    Attributes:
        name: Attribute name (a Python identifier)
        type: Declared scalar type, or None
        definition: Nested ParametersDefinition, or None
        many: Whether the value is a list of nested definitions
        required: Whether the attribute must be present and non-empty
        default: Value used when an optional attribute is absent (MISSING if none)
        rules: Validation rules applied to the casted value
    """

    name: str
    type: Optional[Any] = None
    definition: Optional["ParametersDefinition"] = None
    many: bool = False
    required: bool = False
    default: Any = MISSING
    rules: Tuple[ValidationRule, ...] = field(default_factory=tuple)

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def is_nested(self) -> bool:
        return self.definition is not None

    def default_value(self) -> Any:
        """Fresh copy of the default, so parsed instances never share it."""
        if self.default is MISSING:
            return None
        return copy.deepcopy(self.default)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the declarative representation used by the loader."""
        result: Dict[str, Any] = {}
        if self.definition is not None:
            if self.many:
                result["type"] = "array"
            result["attributes"] = self.definition.to_dict()["attributes"]
        elif self.type is not None:
            result["type"] = type_name(self.type)
        if self.required:
            result["required"] = True
        if self.has_default:
            result["default"] = dump_value(self.default)
        for rule in self.rules:
            described = describe_rule(rule)
            if described is not None:
                option, config = described
                result[option] = dump_value(config)
        return result

    def __repr__(self) -> str:
        attrs = [f"name={self.name!r}"]
        if self.type is not None:
            attrs.append(f"type={self.type.__name__}")
        if self.definition is not None:
            attrs.append(f"definition={self.definition.name!r}")
        if self.many:
            attrs.append("many=True")
        if self.required:
            attrs.append("required=True")
        if self.has_default:
            attrs.append(f"default={self.default!r}")
        return f"Attribute({', '.join(attrs)})"
