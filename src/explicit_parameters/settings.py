"""
Parser settings.

Pydantic model validating the configuration a definition is built with.
Settings are given to ``define(..., settings=...)`` or read from the
``settings`` block of a declarative definition; nested schemas inherit
the settings of their parent.

Example YAML:
    name: search
    settings:
      max_depth: 8        # Maximum schema nesting depth (default: 32)
      strict_types: true  # Disable string coercion (default: false)
    attributes:
      query: {type: string, required: true}
"""

from pydantic import BaseModel, ConfigDict, Field


class ParserSettings(BaseModel):
    """
    Configuration for building and parsing a definition.

    Attributes:
        max_depth: Maximum nesting depth of sub-schemas
        strict_types: Only accept values already of the declared type

    Example:
        >>> settings = ParserSettings(max_depth=4)
        >>> settings.strict_types
        False
    """

    max_depth: int = Field(
        default=32,
        ge=1,
        le=1000,
        description="Maximum nesting depth of sub-schemas, checked at definition time",
    )

    strict_types: bool = Field(
        default=False,
        description="When true, values are not coerced from strings to the declared type",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


DEFAULT_SETTINGS = ParserSettings()
