"""
Exception Classes for Explicit Parameters.

Two moments can fail:
- Definition time: DefinitionError is raised synchronously while a schema
  is being built (duplicate names, unknown types or rule options).
- Parse time: InvalidParameters is raised once, after every attribute has
  been walked, and carries the complete ErrorReport.

This module has no dependencies on the rest of the package except the
report type, so every other module can import it.
"""

from typing import Any, Dict

from .report import ErrorReport


class ExplicitParametersError(Exception):
    """Base class for all errors raised by explicit_parameters."""


class DefinitionError(ExplicitParametersError, ValueError):
    """
    Raised when a parameters definition is invalid.

    Always raised while the definition is being built, never deferred
    to parse time.
    """


class InvalidParameters(ExplicitParametersError):
    """
    Raised when input does not satisfy a parameters definition.

    The string form of the exception is the compact JSON payload, so it
    can be returned as-is by a web layer:

        {"errors":{"id":["must be greater than 0"]}}

    Attributes:
        report: ErrorReport with every failure collected during the parse
    """

    def __init__(self, report: ErrorReport):
        self.report = report
        super().__init__(report.to_json())

    @property
    def errors(self) -> Dict[str, Any]:
        """Nested mapping of attribute name to messages."""
        return self.report.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the serializable error payload."""
        return {"errors": self.report.to_dict()}

    def to_json(self) -> str:
        return self.report.to_json()

    def __repr__(self) -> str:
        return f"InvalidParameters({self.report.to_dict()!r})"
