"""Structural comparison of two revisions of a localization document."""

from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

KEY_SEPARATOR = "."


class ValueChange(NamedTuple):
    """Old and new value of a key present in both revisions."""

    old: Any
    new: Any


@dataclass
class ChangeSet:
    """Keys added, updated, and deleted between a base and a head document.

    The three key sets are pairwise disjoint, and keys whose value did not
    change appear in none of them. Keys are stored in lexicographic order.
    """

    added: dict[str, Any] = field(default_factory=dict)
    updated: dict[str, ValueChange] = field(default_factory=dict)
    deleted: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the two documents are equivalent."""
        return not (self.added or self.updated or self.deleted)

    @property
    def total(self) -> int:
        """Total number of changed keys."""
        return len(self.added) + len(self.updated) + len(self.deleted)

    def counts(self) -> dict[str, int]:
        """Per-category counts, for logging."""
        return {"added": len(self.added), "updated": len(self.updated), "deleted": len(self.deleted)}

    def translatable(self) -> dict[str, Any]:
        """Keys that need a translation, mapped to their new source value."""
        strings: dict[str, Any] = dict(self.added)
        strings.update({key: change.new for key, change in self.updated.items()})
        return dict(sorted(strings.items()))


def flatten_document(document: Mapping[str, Any], parent_key: str = "", separator: str = KEY_SEPARATOR) -> dict[str, Any]:
    """Flatten nested mappings into a single level with separator-joined keys.

    Lists are leaf values and are not recursed into. An empty nested mapping
    is kept as a leaf so that adding or removing it still shows up in a diff.
    """
    items: dict[str, Any] = {}
    for key, value in document.items():
        flat_key = f"{parent_key}{separator}{key}" if parent_key else str(key)
        if isinstance(value, Mapping) and value:
            items.update(flatten_document(value, flat_key, separator))
        else:
            items[flat_key] = value
    return items


def values_equal(left: Any, right: Any) -> bool:
    """Deep structural equality that, unlike ==, tells True apart from 1 and 1 apart from 1.0."""
    if type(left) is not type(right):
        return False
    if isinstance(left, Mapping):
        return left.keys() == right.keys() and all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    return left == right


def diff_documents(base: Mapping[str, Any] | None, head: Mapping[str, Any] | None) -> ChangeSet:
    """Compute the ChangeSet that turns the base document into the head document."""
    flat_base = flatten_document(base or {})
    flat_head = flatten_document(head or {})

    change_set = ChangeSet()
    for key in sorted(flat_base.keys() | flat_head.keys()):
        in_base = key in flat_base
        in_head = key in flat_head
        if in_head and not in_base:
            change_set.added[key] = flat_head[key]
        elif in_base and not in_head:
            change_set.deleted[key] = flat_base[key]
        elif not values_equal(flat_base[key], flat_head[key]):
            change_set.updated[key] = ValueChange(old=flat_base[key], new=flat_head[key])

    logger.debug("Computed localization document diff", base_keys=len(flat_base), head_keys=len(flat_head), **change_set.counts())
    return change_set
