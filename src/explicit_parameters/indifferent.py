"""
Indifferent key lookup over caller-supplied mappings.

Raw input may come from JSON (str keys), from Python code using Enum
members as keys, or from byte-oriented transports (bytes keys). Every key
is normalized once to a canonical str so that looking up ``"id"`` finds
the value whatever form the caller used.
"""

from enum import Enum
from typing import Any, Dict, Hashable, Iterator, Mapping


def normalize_key(key: Hashable) -> str:
    """
    Normalize a mapping key to its canonical string form.

    Examples:
        >>> normalize_key("id")
        'id'
        >>> normalize_key(b"id")
        'id'
        >>> normalize_key(Field.ID)  # class Field(str, Enum): ID = "id"
        'id'
    """
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, str):
        return key
    if isinstance(key, (bytes, bytearray)):
        return bytes(key).decode("utf-8", errors="replace")
    return str(key)


class IndifferentView(Mapping):
    """
    Read-only view of a mapping with normalized keys.

    The wrapped mapping is neither copied nor mutated; only an index from
    normalized key to original key is built. When two original keys
    normalize to the same string the last one wins, matching dict update
    semantics.
    """

    def __init__(self, data: Mapping):
        self._data = data
        self._index: Dict[str, Hashable] = {}
        for key in data.keys():
            self._index[normalize_key(key)] = key

    def __getitem__(self, key: Hashable) -> Any:
        return self._data[self._index[normalize_key(key)]]

    def __contains__(self, key: object) -> bool:
        return normalize_key(key) in self._index  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"IndifferentView({dict(self.items())!r})"
