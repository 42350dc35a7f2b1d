"""Merge engine combining configuration entries into one tree."""

import logging
from typing import Any, Iterable, Optional, Sequence

from .values import Table, copy_value, is_table, join_path

logger = logging.getLogger(__name__)


def deep_merge(base: Table, overlay: Table) -> Table:
    """Deep merge two tables in-place, with overlay taking precedence.

    Nested tables present on both sides are merged key by key; any other value
    from the overlay (scalars and arrays alike) replaces the base value.

    Args:
        base: Base table (modified in-place)  # (existing configuration)
        overlay: Overlay table (takes precedence)  # (overrides and additions)

    Returns:
        The base table  # (same object, returned for chaining)
    """
    stack = [(base, overlay)]
    while stack:
        target, source = stack.pop()
        for key, value in source.items():
            if key in target and is_table(target[key]) and is_table(value):
                # Nested tables are merged after this level
                stack.append((target[key], value))
            else:
                # Replace or add the value, never sharing structure with the overlay
                target[key] = copy_value(value)
    return base


def merge_at_path(tree: Any, path: Sequence[str], value: Any) -> Any:
    """Merge a value into the tree at the given path.

    - Empty path with a table: deep merge into the root.
    - Empty path with anything else: the value replaces the whole root.
    - Non-empty path: intermediate tables are created as needed (a non-table
      in the way is replaced by an empty table), then the value is deep merged
      into an existing table or replaces what is at the final key.

    Args:
        tree: Root of the configuration tree (modified in-place)  # (normally a dict)
        path: Path segments to the target location  # (e.g., ["database", "host"])
        value: Value to merge at the target location

    Returns:
        Root of the tree  # (the same object unless the root itself was replaced)
    """
    if not path:
        if is_table(value) and is_table(tree):
            return deep_merge(tree, value)
        if not is_table(value):
            logger.warning("Replacing the configuration root with a %s value", type(value).__name__)
        return copy_value(value)

    # A path targets a nested location, so the root has to be a table
    if not is_table(tree):
        tree = {}

    # Navigate to the parent of the target key, creating tables as needed
    current = tree
    for segment in path[:-1]:
        child = current.get(segment)
        if not is_table(child):
            if child is not None:
                logger.debug("Replacing %s value at '%s' with a table", type(child).__name__, join_path(path))
            child = {}
            current[segment] = child
        current = child

    key = path[-1]
    existing = current.get(key)
    if is_table(existing) and is_table(value):
        deep_merge(existing, value)
    else:
        current[key] = copy_value(value)
    return tree


def merge_entries(entries: Iterable[Any], tree: Optional[Any] = None) -> Any:
    """Merge an ordered sequence of entries into a tree.

    Args:
        entries: Entries with ``path`` and ``value`` attributes  # (later entries win)
        tree: Tree to merge into, a new empty table if not given

    Returns:
        Root of the merged tree
    """
    root = {} if tree is None else tree
    for entry in entries:
        root = merge_at_path(root, entry.path, entry.value)
    return root
