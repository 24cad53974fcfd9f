"""
Dotted path lookup for nested descriptor blocks.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def resolve_path(root: Mapping[str, Any] | None, dotted_path: str) -> Any | None:
    """
    Fetch a nested value such as "queues.producers" from a descriptor.

    Walking stops with None as soon as a segment is missing or the value
    reached so far is not a mapping.

    Args:
        root: Descriptor mapping
        dotted_path: Keys joined with "."

    Returns:
        The value at the path, or None
    """
    current: Any = root
    for segment in dotted_path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current
