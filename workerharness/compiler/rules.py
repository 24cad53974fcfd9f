"""
Descriptor Mapping Rules.

Declarative table describing how descriptor fields become compiled worker
options. Three kinds of rule cover every supported binding category:

    DirectRule       copy the value verbatim under a new name
    NameListRule     [{binding: "KV", ...}, ...]      -> ["KV", ...]
    KeyedObjectRule  [{binding: "DB", database_id: "d1"}] -> {"DB": "d1"}

Adding a binding category means adding a row to MAPPING_RULES; the compiler
applies the table without knowing what is in it.

Service bindings look like a keyed-object rule but also produce workers, so
they are handled by the compiler itself.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .paths import resolve_path
from .schemas import CompiledWorker

_UNSET: Any = object()


class MappingRule(Protocol):
    """A single descriptor-to-worker transformation."""

    source: str
    target: str

    def apply(self, descriptor: Mapping[str, Any], worker: CompiledWorker) -> bool:
        """Apply to worker; return True if the descriptor had the source."""
        ...


@dataclass(frozen=True, slots=True)
class DirectRule:
    """Copy a scalar or array verbatim."""

    source: str
    target: str

    def apply(self, descriptor: Mapping[str, Any], worker: CompiledWorker) -> bool:
        value = resolve_path(descriptor, self.source)
        if value is None:
            return False
        setattr(worker, self.target, value)
        return True


@dataclass(frozen=True, slots=True)
class NameListRule:
    """Reduce a sequence of binding objects to their binding names."""

    source: str
    target: str

    def apply(self, descriptor: Mapping[str, Any], worker: CompiledWorker) -> bool:
        items = resolve_path(descriptor, self.source)
        if not items:
            return False
        setattr(worker, self.target, [item["binding"] for item in items])
        return True


@dataclass(frozen=True, slots=True)
class KeyedObjectRule:
    """
    Turn a sequence of objects into a mapping keyed by one of their fields.

    Each entry maps to either its value_field or, when given, a copy of
    static_value. Duplicate keys keep the last entry.
    """

    source: str
    target: str
    key_field: str
    value_field: str | None = None
    static_value: Any = _UNSET

    def __post_init__(self):
        if (self.value_field is None) == (self.static_value is _UNSET):
            raise ValueError(
                f"Rule for '{self.source}' needs exactly one of value_field or static_value"
            )

    def apply(self, descriptor: Mapping[str, Any], worker: CompiledWorker) -> bool:
        items = resolve_path(descriptor, self.source)
        if items is None or not isinstance(items, Sequence):
            return False

        mapped: dict[str, Any] = {}
        for item in items:
            mapped[item[self.key_field]] = self._value_for(item)

        setattr(worker, self.target, mapped)
        return True

    def _value_for(self, item: Mapping[str, Any]) -> Any:
        if self.static_value is not _UNSET:
            return copy.deepcopy(self.static_value)
        return item.get(self.value_field)


# =============================================================================
# Rule Table
# =============================================================================


# `main` is required by the deployment tooling but optional here; workers
# without a script get a stub at setup time.
DIRECT_RULES: tuple[DirectRule, ...] = (
    DirectRule("main", "script_path"),
    DirectRule("compatibility_date", "compatibility_date"),
    DirectRule("compatibility_flags", "compatibility_flags"),
)

NAME_LIST_RULES: tuple[NameListRule, ...] = (
    NameListRule("kv_namespaces", "kv_namespaces"),
    NameListRule("r2_buckets", "r2_buckets"),
)

KEYED_OBJECT_RULES: tuple[KeyedObjectRule, ...] = (
    KeyedObjectRule("queues.producers", "queue_producers", key_field="binding", value_field="queue"),
    KeyedObjectRule("queues.consumers", "queue_consumers", key_field="queue", static_value={}),
    KeyedObjectRule("d1_databases", "d1_databases", key_field="binding", value_field="database_id"),
    KeyedObjectRule(
        "durable_objects.bindings", "durable_objects", key_field="name", value_field="class_name"
    ),
)

# Applied in this order: direct, then name lists, then keyed objects.
MAPPING_RULES: tuple[MappingRule, ...] = (*DIRECT_RULES, *NAME_LIST_RULES, *KEYED_OBJECT_RULES)
