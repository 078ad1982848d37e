"""
Error Report for a single parse pass.

Collects failure messages keyed by attribute name. Nested schema failures
are stored as a nested ErrorReport under the parent attribute, and array
element failures under the element index, so the rendered payload mirrors
the shape of the parsed parameters:

    {"errors": {"address": {"city": ["is required"]}}}
    {"errors": {"addresses": {"1": {"street": ["is required"]}}}}
"""

import json
from typing import Any, Dict, Iterator, List, Tuple, Union


Node = Union[List[str], "ErrorReport"]


class ErrorReport:
    """
    Ordered mapping from attribute name to failure messages.

    A report is built by exactly one parse pass and is not shared.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Node] = {}

    def add(self, path: str, message: str) -> None:
        """Append a message for an attribute."""
        node = self._entries.setdefault(str(path), [])
        if isinstance(node, ErrorReport):
            # A nested report already owns this key; keep messages beside it
            node.add("base", message)
        else:
            node.append(message)

    def merge(self, path: str, other: "ErrorReport") -> None:
        """Attach a nested report under ``path``."""
        if not other:
            return
        path = str(path)
        existing = self._entries.get(path)
        if isinstance(existing, ErrorReport):
            for key, node in other._entries.items():
                if isinstance(node, ErrorReport):
                    existing.merge(key, node)
                else:
                    for message in node:
                        existing.add(key, message)
        elif existing:
            for message in existing:
                other.add("base", message)
            self._entries[path] = other
        else:
            self._entries[path] = other

    def messages_for(self, path: str) -> List[str]:
        """Messages recorded directly on an attribute (not nested ones)."""
        node = self._entries.get(str(path))
        if isinstance(node, list):
            return list(node)
        return []

    def flatten(self, prefix: str = "") -> List[Tuple[str, str]]:
        """
        List every failure as a (dotted_path, message) pair.

        Example:
            >>> report.flatten()
            [("id", "is required"), ("addresses.1.city", "is required")]
        """
        result: List[Tuple[str, str]] = []
        for key, node in self._entries.items():
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(node, ErrorReport):
                result.extend(node.flatten(path))
            else:
                result.extend((path, message) for message in node)
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain nested dicts and lists."""
        return {
            key: node.to_dict() if isinstance(node, ErrorReport) else list(node)
            for key, node in self._entries.items()
        }

    def to_json(self) -> str:
        """Render the compact ``{"errors": ...}`` payload."""
        return json.dumps(
            {"errors": self.to_dict()},
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __getitem__(self, path: str) -> Node:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorReport):
            return self.to_dict() == other.to_dict()
        if isinstance(other, dict):
            return self.to_dict() == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ErrorReport({self.to_dict()!r})"
