"""
Parameters Definitions and the declaration DSL.

A definition is built once by a function receiving a DefinitionBuilder,
then reused for every parse:

    from explicit_parameters import define

    @define("user")
    def user_params(p):
        p.requires("id", int, numericality={"greater_than": 0})
        p.accepts("name", str)
        p.accepts("title", str, default="Untitled")
        p.accepts("addresses", list, block=lambda a: (
            a.requires("street", str),
            a.requires("city", str),
        ))

    params = user_params.parse({"id": "42", "name": "George"})
    params.id     # 42
    params.title  # "Untitled"

Parsing walks every attribute in declaration order, accumulating failures
in an ErrorReport; InvalidParameters is raised once at the end if any
attribute failed.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .attribute import MISSING, Attribute
from .casting import cast_value, resolve_type
from .errors import DefinitionError, InvalidParameters
from .indifferent import IndifferentView, normalize_key
from .report import ErrorReport
from .rules import build_rules, run_rules
from .settings import DEFAULT_SETTINGS, ParserSettings

logger = logging.getLogger(__name__)


REQUIRED_MESSAGE = "is required"
NOT_A_HASH_MESSAGE = "must be a hash"
NOT_AN_ARRAY_MESSAGE = "must be an array"

# Names that would be shadowed by Parameters methods
RESERVED_NAMES = frozenset(
    {
        "raw", "definition", "define", "get", "keys", "items",
        "to_dict", "stringify_keys", "reject", "select",
    }
)

Block = Callable[["DefinitionBuilder"], Any]


def _is_missing(value: Any) -> bool:
    """None and empty strings/collections count as absent for required attributes."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, Mapping):
        return len(value) == 0
    return False


class DefinitionBuilder:
    """
    Collects attribute declarations for one definition.

    Only ``requires`` and ``accepts`` are meant to be called from a
    definition block; ``build`` snapshots the declarations into an
    immutable ParametersDefinition.
    """

    def __init__(self, name: str, settings: ParserSettings = DEFAULT_SETTINGS, depth: int = 1):
        if depth > settings.max_depth:
            raise DefinitionError(
                f"Definition '{name}' is nested {depth} levels deep "
                f"(max_depth is {settings.max_depth})"
            )
        self.name = name
        self.settings = settings
        self.depth = depth
        self._attributes: Dict[str, Attribute] = {}

    def requires(
        self,
        name: str,
        type: Union[str, type, "ParametersDefinition", None] = None,
        block: Union[Block, "ParametersDefinition", None] = None,
        **options: Any,
    ) -> Attribute:
        """
        Declare a required attribute.

        Missing, None, and empty values are reported as "is required".

        Args:
            name: Attribute name
            type: Declared type (``int``, ``"integer"``, ``list`` for arrays of
                ``block``...) or a ParametersDefinition for a nested schema
            block: Function declaring a nested schema, or a built definition
            **options: Validation rule options (numericality, length, ...)
        """
        if "default" in options:
            raise DefinitionError(f"Required attribute '{name}' cannot declare a default")
        return self._declare(name, type, block, required=True, options=options)

    def accepts(
        self,
        name: str,
        type: Union[str, type, "ParametersDefinition", None] = None,
        block: Union[Block, "ParametersDefinition", None] = None,
        **options: Any,
    ) -> Attribute:
        """
        Declare an optional attribute.

        Args:
            name: Attribute name
            type: Declared type or nested ParametersDefinition
            block: Function declaring a nested schema, or a built definition
            **options: ``default`` plus validation rule options
        """
        return self._declare(name, type, block, required=False, options=options)

    def _declare(
        self,
        name: str,
        declared: Any,
        block: Any,
        required: bool,
        options: Dict[str, Any],
    ) -> Attribute:
        name = self._check_name(name)
        default = options.pop("default", MISSING)

        scalar_type: Optional[type] = None
        nested: Optional[ParametersDefinition] = None
        many = False

        if isinstance(declared, ParametersDefinition):
            if block is not None:
                raise DefinitionError(
                    f"Attribute '{name}' declares both a nested definition and a block"
                )
            nested = declared
        elif declared is not None:
            scalar_type = resolve_type(declared)

        if block is not None:
            if scalar_type is list:
                many = True
                scalar_type = None
            elif scalar_type is not None:
                raise DefinitionError(
                    f"Attribute '{name}' has type {scalar_type.__name__}; "
                    "a nested block is only allowed without a type or with list"
                )
            nested = self._nested(name, block)

        attribute = Attribute(
            name=name,
            type=scalar_type,
            definition=nested,
            many=many,
            required=required,
            default=default,
            rules=build_rules(options),
        )
        self._attributes[name] = attribute
        return attribute

    def _check_name(self, name: Any) -> str:
        name = normalize_key(name)
        if not name.isidentifier():
            raise DefinitionError(f"Attribute name {name!r} is not a valid identifier")
        if name.startswith("_"):
            raise DefinitionError(f"Attribute name {name!r} must not start with an underscore")
        if name in RESERVED_NAMES:
            raise DefinitionError(f"Attribute name {name!r} is reserved")
        if name in self._attributes:
            raise DefinitionError(
                f"Attribute {name!r} is declared twice in definition '{self.name}'"
            )
        return name

    def _nested(self, name: str, block: Any) -> "ParametersDefinition":
        if isinstance(block, ParametersDefinition):
            return block
        if not callable(block):
            raise DefinitionError(f"Block for attribute '{name}' must be callable")
        builder = DefinitionBuilder(f"{self.name}.{name}", self.settings, self.depth + 1)
        block(builder)
        return builder.build()

    def build(self) -> "ParametersDefinition":
        definition = ParametersDefinition(
            self.name, tuple(self._attributes.values()), self.settings
        )
        logger.debug(
            "Defined parameters '%s' with %d attribute(s)", self.name, len(definition)
        )
        return definition


class ParametersDefinition:
    """
    Immutable, reusable description of a parameter set.

    Safe to share between threads: parsing allocates its own report and
    values and never mutates the definition or the input.

    Attributes:
        name: Name used in diagnostics
        attributes: Attributes in declaration order
        settings: ParserSettings the definition was built with
    """

    __slots__ = ("_name", "_attributes", "_by_name", "_settings")

    def __init__(
        self,
        name: str,
        attributes: Tuple[Attribute, ...],
        settings: ParserSettings = DEFAULT_SETTINGS,
    ):
        by_name: Dict[str, Attribute] = {}
        for attribute in attributes:
            if attribute.name in by_name:
                raise DefinitionError(
                    f"Attribute {attribute.name!r} is declared twice in definition '{name}'"
                )
            by_name[attribute.name] = attribute
        object.__setattr__(self, "_name", str(name))
        object.__setattr__(self, "_attributes", tuple(attributes))
        object.__setattr__(self, "_by_name", by_name)
        object.__setattr__(self, "_settings", settings)

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def name(self) -> str:
        return self._name

    @property
    def attributes(self) -> Tuple[Attribute, ...]:
        return self._attributes

    @property
    def settings(self) -> ParserSettings:
        return self._settings

    @property
    def attribute_names(self) -> List[str]:
        return [attribute.name for attribute in self._attributes]

    def attribute(self, name: str) -> Attribute:
        """Look up an attribute by name (KeyError if undeclared)."""
        return self._by_name[normalize_key(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._by_name

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def parse(self, raw: Optional[Mapping]) -> "Parameters":
        """
        Validate and cast raw input.

        Args:
            raw: Mapping of raw values; keys are matched indifferently.
                None is treated as an empty mapping.

        Returns:
            Parameters instance holding the casted values and ``raw``

        Raises:
            InvalidParameters: If any attribute is missing, fails to cast,
                or fails a validation rule (all failures are reported)
            TypeError: If raw is not a mapping
        """
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"Parameters for '{self._name}' must be a mapping, got {type(raw).__name__}"
            )

        report = ErrorReport()
        params = self._parse_into(raw, report)
        if report:
            logger.debug(
                "Parameters '%s' rejected: %d failing attribute(s)", self._name, len(report)
            )
            raise InvalidParameters(report)
        return params

    def _parse_into(self, raw: Mapping, report: ErrorReport) -> Optional["Parameters"]:
        """Parse ``raw`` recording failures in ``report``; None if anything failed."""
        from .parameters import Parameters

        view = IndifferentView(raw)
        values: Dict[str, Any] = {}
        supplied = set()
        failed = False

        for attribute in self._attributes:
            name = attribute.name
            present = name in view
            value = view[name] if present else None
            if present:
                supplied.add(name)

            if attribute.type not in (None, str) and isinstance(value, str) and not value.strip():
                # Blank form fields mean "not given" for non-string types
                value = None

            if attribute.required and _is_missing(value):
                report.add(name, REQUIRED_MESSAGE)
                failed = True
                continue

            if value is None:
                if attribute.has_default:
                    values[name] = attribute.default_value()
                elif present:
                    values[name] = None
                continue

            ok, resolved = self._resolve(attribute, value, report)
            if ok:
                values[name] = resolved
            else:
                failed = True

        if failed:
            return None
        return Parameters(self, raw, values, frozenset(supplied))

    def _resolve(self, attribute: Attribute, value: Any, report: ErrorReport) -> Tuple[bool, Any]:
        name = attribute.name

        if attribute.definition is not None and attribute.many:
            return self._resolve_many(attribute, value, report)

        if attribute.definition is not None:
            if not isinstance(value, Mapping):
                report.add(name, NOT_A_HASH_MESSAGE)
                return False, None
            nested_report = ErrorReport()
            nested = attribute.definition._parse_into(value, nested_report)
            if nested_report:
                report.merge(name, nested_report)
                return False, None
            messages = run_rules(attribute.rules, nested)
            for message in messages:
                report.add(name, message)
            return not messages, nested

        if attribute.type is not None:
            value, failure = cast_value(value, attribute.type, strict=self._settings.strict_types)
            if failure is not None:
                report.add(name, failure.message)
                return False, None

        messages = run_rules(attribute.rules, value)
        for message in messages:
            report.add(name, message)
        return not messages, value

    def _resolve_many(self, attribute: Attribute, value: Any, report: ErrorReport) -> Tuple[bool, Any]:
        name = attribute.name
        if not isinstance(value, (list, tuple)):
            report.add(name, NOT_AN_ARRAY_MESSAGE)
            return False, None

        items_report = ErrorReport()
        items: List[Any] = []
        for index, item in enumerate(value):
            if not isinstance(item, Mapping):
                items_report.add(str(index), NOT_A_HASH_MESSAGE)
                continue
            item_report = ErrorReport()
            parsed = attribute.definition._parse_into(item, item_report)
            if item_report:
                items_report.merge(str(index), item_report)
            else:
                items.append(parsed)

        if items_report:
            report.merge(name, items_report)
            return False, None

        messages = run_rules(attribute.rules, items)
        for message in messages:
            report.add(name, message)
        return not messages, items

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the declarative representation accepted by
        ``definition_from_dict``.
        """
        result: Dict[str, Any] = {"name": self._name}
        if self._settings != DEFAULT_SETTINGS:
            result["settings"] = self._settings.model_dump(exclude_defaults=True)
        result["attributes"] = {
            attribute.name: attribute.to_dict() for attribute in self._attributes
        }
        return result

    def __repr__(self) -> str:
        return f"ParametersDefinition(name={self._name!r}, attributes={self.attribute_names})"


def define(
    name: str,
    block: Optional[Block] = None,
    settings: Optional[ParserSettings] = None,
) -> Union[ParametersDefinition, Callable[[Block], ParametersDefinition]]:
    """
    Build a ParametersDefinition from a declaration block.

    The block is called once, synchronously, with a DefinitionBuilder.
    Without a block, returns a decorator so the block can be written as a
    plain function.

    Args:
        name: Definition name (diagnostics only)
        block: Function declaring attributes on the builder
        settings: ParserSettings (default settings if omitted)

    Returns:
        ParametersDefinition, or a decorator producing one

    Raises:
        DefinitionError: On any invalid declaration

    Example:
        >>> definition = define("search", lambda p: (
        ...     p.requires("query", str),
        ...     p.accepts("limit", int, default=10),
        ... ))
        >>> definition.parse({"query": "hello"}).limit
        10
    """
    settings = settings or DEFAULT_SETTINGS

    def build(func: Block) -> ParametersDefinition:
        if not callable(func):
            raise DefinitionError(f"Definition block for '{name}' must be callable")
        builder = DefinitionBuilder(normalize_key(name), settings)
        func(builder)
        return builder.build()

    if block is None:
        return build
    return build(block)
