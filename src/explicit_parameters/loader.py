"""
Declarative definitions from YAML, JSON, or plain dicts.

The document shape mirrors the DSL; each attribute is a mapping holding
its ``type``, ``required`` flag, ``default``, nested ``attributes`` and
any validation rule options. A bare type name is shorthand for an
optional attribute of that type.

Example YAML:
    name: user
    settings:
      max_depth: 8
    attributes:
      id:
        type: integer
        required: true
        numericality: {greater_than: 0}
      name: string
      title: {type: string, default: Untitled}
      addresses:
        type: array
        attributes:
          street: {type: string, required: true}
          city: {type: string, required: true}

A mapping is read as the envelope above only when its ``attributes`` value
is a mapping and every other key is ``name``, ``settings`` or
``description``; anything else is read as the attributes themselves, so
short schemas can skip the envelope. A schema whose only attributes use
those four names must be wrapped in the envelope.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from .casting import cast_value, resolve_type
from .definition import DefinitionBuilder, ParametersDefinition
from .errors import DefinitionError
from .settings import DEFAULT_SETTINGS, ParserSettings

logger = logging.getLogger(__name__)


def _declare_all(builder: DefinitionBuilder, attributes: Mapping[str, Any]) -> None:
    for name, config in attributes.items():
        _declare(builder, name, config)


def _declare(builder: DefinitionBuilder, name: str, config: Any) -> None:
    if config is None:
        config = {}
    elif isinstance(config, str):
        config = {"type": config}
    elif not isinstance(config, Mapping):
        raise DefinitionError(
            f"Invalid config for attribute '{name}': must be a mapping or a type name"
        )

    options = dict(config)
    required = options.pop("required", False)
    if not isinstance(required, bool):
        raise DefinitionError(f"Attribute '{name}': required must be true or false")
    declared = options.pop("type", None)
    nested = options.pop("attributes", None)

    block = None
    if nested is not None:
        if not isinstance(nested, Mapping):
            raise DefinitionError(f"Attribute '{name}': attributes must be a mapping")

        def block(child: DefinitionBuilder) -> None:
            _declare_all(child, nested)

    if nested is None and declared is not None and options.get("default") is not None:
        options["default"] = _cast_default(name, declared, options["default"])

    if required:
        builder.requires(name, declared, block, **options)
    else:
        builder.accepts(name, declared, block, **options)


def _cast_default(name: str, declared: Any, default: Any) -> Any:
    # Dumped defaults are plain strings ("1.5" for a Decimal)
    value, failure = cast_value(default, resolve_type(declared))
    if failure is not None:
        raise DefinitionError(
            f"Attribute '{name}': default {default!r} {failure.message}"
        )
    return value


def _settings_from(data: Any, settings: Optional[ParserSettings]) -> ParserSettings:
    if settings is not None:
        return settings
    if data is None:
        return DEFAULT_SETTINGS
    if not isinstance(data, Mapping):
        raise DefinitionError("settings must be a mapping")
    try:
        return ParserSettings(**data)
    except ValidationError as e:
        raise DefinitionError(f"Invalid settings: {e}")


ENVELOPE_KEYS = frozenset({"name", "settings", "attributes", "description"})


def _is_envelope(data: Mapping[str, Any]) -> bool:
    return isinstance(data.get("attributes"), Mapping) and set(data) <= ENVELOPE_KEYS


def definition_from_dict(
    data: Mapping[str, Any],
    name: Optional[str] = None,
    settings: Optional[ParserSettings] = None,
) -> ParametersDefinition:
    """
    Build a ParametersDefinition from its declarative form.

    Args:
        data: Document with ``name``, ``settings`` and ``attributes`` keys,
            or a mapping of attributes
        name: Definition name (overrides the document's ``name``)
        settings: ParserSettings (overrides the document's ``settings``)

    Returns:
        ParametersDefinition

    Raises:
        DefinitionError: If the document is malformed

    Example:
        >>> definition = definition_from_dict({
        ...     "query": {"type": "str", "required": True},
        ...     "limit": {"type": "int", "default": 10},
        ... })
    """
    if not isinstance(data, Mapping):
        raise DefinitionError(
            f"Definition must be a mapping, got {type(data).__name__}"
        )

    if _is_envelope(data):
        attributes = data["attributes"]
        name = name or data.get("name")
        settings = _settings_from(data.get("settings"), settings)
    else:
        attributes = data
        settings = settings or DEFAULT_SETTINGS

    builder = DefinitionBuilder(str(name or "parameters"), settings)
    _declare_all(builder, attributes)
    return builder.build()


def loads_definition(text: str, name: Optional[str] = None) -> ParametersDefinition:
    """Build a definition from YAML (or JSON) text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DefinitionError(f"Invalid YAML syntax: {e}")
    if data is None:
        raise DefinitionError("Definition document is empty")
    return definition_from_dict(data, name=name)


def load_definition(path: Union[str, Path], name: Optional[str] = None) -> ParametersDefinition:
    """
    Load a definition from a YAML or JSON file.

    The definition name defaults to the document's ``name`` key, then to
    the file stem.
    """
    path = Path(path)
    if not path.exists():
        raise DefinitionError(f"Definition file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DefinitionError(f"Invalid YAML syntax in {path}: {e}")
    if data is None:
        raise DefinitionError(f"Definition file is empty: {path}")

    if name is None and not (isinstance(data, Mapping) and _is_envelope(data) and data.get("name")):
        name = path.stem
    definition = definition_from_dict(data, name=name)
    logger.info(
        "Loaded parameters definition '%s' (%d attributes) from %s",
        definition.name,
        len(definition),
        path,
    )
    return definition


def dump_definition(definition: ParametersDefinition) -> str:
    """Render a definition as YAML."""
    return yaml.safe_dump(definition.to_dict(), sort_keys=False, allow_unicode=True)
