"""
Parameters: the result of a successful parse.

Two views over the same input are kept on purpose:
- attribute access (``params.id``) returns the casted value
- item access (``params["id"]``) returns the raw value from the input,
  including keys the definition does not declare

Iteration and projections only ever expose declared attributes whose key
was supplied by the caller, in declaration order.
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    Hashable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

from .indifferent import IndifferentView

if TYPE_CHECKING:
    from .definition import Block, ParametersDefinition


class Parameters:
    """
    Validated, casted parameters with access to the raw input.

    Instances are only created by ``ParametersDefinition.parse``.

    Example:
        >>> params = definition.parse({"id": "42", "unexpected": "x"})
        >>> params.id
        42
        >>> params["id"]
        '42'
        >>> params["unexpected"]
        'x'
        >>> params.to_dict()
        {'id': 42}
    """

    __slots__ = ("_definition", "_raw", "_view", "_values", "_supplied")

    def __init__(
        self,
        definition: "ParametersDefinition",
        raw: Mapping,
        values: Dict[str, Any],
        supplied: FrozenSet[str],
    ):
        self._definition = definition
        self._raw = raw
        self._view = IndifferentView(raw)
        self._values = values
        self._supplied = supplied

    @classmethod
    def define(cls, name: str, block: Optional["Block"] = None, settings=None):
        """Shortcut for ``explicit_parameters.define``."""
        from .definition import define

        return define(name, block, settings=settings)

    @property
    def definition(self) -> "ParametersDefinition":
        return self._definition

    @property
    def raw(self) -> Mapping:
        """The exact mapping given to ``parse``."""
        return self._raw

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not methods or slots
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._definition:
            return self._values.get(name)
        raise AttributeError(
            f"'{self._definition.name}' parameters have no attribute '{name}'"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__slots__ and not hasattr(self, name):
            object.__setattr__(self, name, value)
            return
        raise AttributeError(f"{type(self).__name__} is read-only")

    # Raw, hash-style access

    def __getitem__(self, key: Hashable) -> Any:
        return self._view[key]

    def __contains__(self, key: object) -> bool:
        return key in self._view

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Raw value for ``key``, or ``default`` if the input lacks it."""
        return self._view.get(key, default)

    # Casted projections

    def keys(self) -> List[str]:
        """
        Names of the declared attributes the caller supplied.

        Paired with item access, so ``dict(params)`` holds raw values;
        use ``to_dict`` for casted ones.
        """
        return [name for name, _ in self._pairs()]

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._pairs())

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return self._pairs()

    def _pairs(self) -> Iterator[Tuple[str, Any]]:
        for attribute in self._definition.attributes:
            name = attribute.name
            if name in self._supplied and name in self._values:
                yield name, self._values[name]

    def to_dict(self, recursive: bool = False) -> Dict[str, Any]:
        """
        Casted values as a plain dict.

        Nested parameters stay Parameters instances unless ``recursive``
        is set, in which case they are projected with ``to_dict`` too.
        """
        return {
            name: _project(value, "to_dict") if recursive else value
            for name, value in self._pairs()
        }

    def stringify_keys(self, recursive: bool = False) -> Dict[str, Any]:
        """Casted values as a dict with str keys."""
        return {
            str(name): _project(value, "stringify_keys") if recursive else value
            for name, value in self._pairs()
        }

    def reject(self, predicate: Callable[[str, Any], bool]) -> Dict[str, Any]:
        """Plain dict of the pairs for which ``predicate(name, value)`` is false."""
        return {name: value for name, value in self._pairs() if not predicate(name, value)}

    def select(self, predicate: Callable[[str, Any], bool]) -> Dict[str, Any]:
        """Plain dict of the pairs for which ``predicate(name, value)`` is true."""
        return {name: value for name, value in self._pairs() if predicate(name, value)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parameters):
            return NotImplemented
        return self._definition is other._definition and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = " ".join(f"{name}={value!r}" for name, value in self._pairs())
        return f"<Parameters {self._definition.name}{' ' + fields if fields else ''}>"


def _project(value: Any, method: str) -> Any:
    if isinstance(value, Parameters):
        return getattr(value, method)(recursive=True)
    if isinstance(value, list):
        return [_project(item, method) for item in value]
    return value
