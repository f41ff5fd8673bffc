"""Item traversal context.

The validation engine pushes one :class:`ItemStackEntry` per nesting level
while it walks a document. The root entry holds the whole document and has
no name; every deeper entry holds one property, array element or hashtable
value together with its counterpart from the previous revision.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ItemStackEntry:
    """One level of the traversal.

    ``is_missing`` distinguishes a key that is absent from the new document
    from a key that is present with an explicit ``None`` value.
    """

    item_name: str | None
    item_value: Any
    old_item_value: Any
    is_missing: bool = False


ItemStack = Sequence[ItemStackEntry]


def build_item_path(stack: ItemStack) -> str:
    """Join the names on the stack into a dotted/bracketed path.

    Unnamed entries (the document root) are skipped and bracketed names
    attach without a separator, so names ``a``, ``b``, ``[2]`` become
    ``a.b[2]``.
    """
    components: list[str] = []
    for entry in stack:
        name = entry.item_name
        if not name:
            continue
        if not components or name.startswith("["):
            components.append(name)
        else:
            components.append("." + name)
    return "".join(components)


def child_path(parent_path: str, name: str) -> str:
    """Path of a named child of the object at ``parent_path``."""
    return f"{parent_path}.{name}" if parent_path else name


def element_name(key: object) -> str:
    """Stack name for an array index or hashtable key."""
    return f"[{key}]"
