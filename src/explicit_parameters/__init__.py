"""
Explicit Parameters: declarative validation and casting of external input.

Provides a small DSL to declare which parameters an entry point accepts:
- Type casting (int, float, Decimal, bool, date, datetime, str, ...)
- Required attributes and default values
- Nested definitions and arrays of nested definitions
- Validation rules (numericality, length, format, inclusion, JSON Schema, callables)
- Aggregated, JSON-serializable error reports

Example:
    >>> from explicit_parameters import define, InvalidParameters
    >>> definition = define("user", lambda p: (
    ...     p.requires("id", int, numericality={"greater_than": 0}),
    ...     p.accepts("name", str),
    ...     p.accepts("title", str, default="Untitled"),
    ... ))
    >>> params = definition.parse({"id": "42", "name": "George", "unexpected": "x"})
    >>> params.id, params.title, params["unexpected"]
    (42, 'Untitled', 'x')
    >>> definition.parse({"id": -1})
    Traceback (most recent call last):
    ...
    InvalidParameters: {"errors":{"id":["must be greater than 0"]}}
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("explicit_parameters")
except PackageNotFoundError:
    __version__ = "dev"

from .attribute import MISSING, Attribute
from .casting import CastFailure, cast_value, register_caster
from .definition import DefinitionBuilder, ParametersDefinition, define
from .errors import DefinitionError, ExplicitParametersError, InvalidParameters
from .loader import definition_from_dict, dump_definition, load_definition, loads_definition
from .parameters import Parameters
from .report import ErrorReport
from .rules import ValidationRule
from .settings import ParserSettings

__all__ = [
    "__version__",
    # DSL
    "define",
    "DefinitionBuilder",
    "ParametersDefinition",
    "Parameters",
    "Attribute",
    "MISSING",
    # Casting and rules
    "cast_value",
    "register_caster",
    "CastFailure",
    "ValidationRule",
    # Errors
    "ErrorReport",
    "ExplicitParametersError",
    "DefinitionError",
    "InvalidParameters",
    # Declarative definitions
    "definition_from_dict",
    "load_definition",
    "loads_definition",
    "dump_definition",
    # Configuration
    "ParserSettings",
]
