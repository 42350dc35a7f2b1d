"""Reference resolution engine for LayerConf configurations.

String values may reference other values with ``${section.field}``. ``$$``
produces a literal ``$``, so ``$${x}`` renders as ``${x}``. A ``$`` followed by
anything else is kept as is.

References are substituted in repeated passes over the whole tree until a pass
makes no substitution. References that keep producing substitutions for
``MAX_PASSES`` passes are reported as circular, and so is a string that
references its own path, since each pass would splice the string into itself
and double its length long before the pass limit.
"""

import logging
from typing import Any, List, Optional, Tuple

from .exceptions import (
    CircularReferenceError,
    InvalidReferencePathError,
    NonScalarReferenceError,
    ReferenceNotFoundError,
    UnclosedReferenceError,
)
from .values import Table, is_array, is_scalar, is_table, value_to_string

logger = logging.getLogger(__name__)

MAX_PASSES = 100


class ReferenceResolver:
    """Resolver substituting ``${...}`` references until a fixed point."""

    def __init__(self, tree: Table, max_passes: int = MAX_PASSES):
        """Initialize reference resolver.

        Args:
            tree: Configuration tree  # (nested dict, strings are replaced in-place)
            max_passes: Passes allowed before references are considered circular
        """
        if max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {max_passes}")
        self.tree = tree
        self.max_passes = max_passes

    def resolve(self) -> Table:
        """Resolve all references in the configuration in-place.

        Returns:
            The resolved configuration tree

        Raises:
            CircularReferenceError: If no fixed point is reached within ``max_passes``
                or a string references its own path
            ReferenceNotFoundError: If a referenced path does not exist
            InvalidReferencePathError: If a reference has an empty body or segment
            NonScalarReferenceError: If a reference points at a table or array
            UnclosedReferenceError: If a reference misses its closing brace
        """
        for passes in range(1, self.max_passes + 1):
            # Escapes stay intact until the fixed point so their output is never re-read as a reference
            substitutions = resolve_pass(self.tree, self.tree, unescape=False)
            if substitutions == 0:
                resolve_pass(self.tree, self.tree, unescape=True)
                logger.debug("References resolved after %d pass(es)", passes)
                return self.tree
            logger.debug("Pass %d made %d substitution(s)", passes, substitutions)

        raise CircularReferenceError(self.max_passes)


def resolve_references(tree: Table, max_passes: int = MAX_PASSES) -> None:
    """Resolve all ``${...}`` references of a configuration tree in-place.

    Args:
        tree: Configuration tree  # (nested dict)
        max_passes: Passes allowed before references are considered circular

    Raises:
        ResolutionError: On the first failing reference, see ``ReferenceResolver.resolve``
    """
    ReferenceResolver(tree, max_passes=max_passes).resolve()


def resolve_pass(node: Any, root: Table, unescape: bool = True) -> int:
    """Run one substitution pass over a node and everything below it.

    Tuples met on the way are replaced by lists so their strings can be
    substituted in-place. Strings of nested tables are visited before the
    strings below them.

    Args:
        node: Table, array or scalar to process  # (containers are modified in-place)
        root: Root of the tree used for lookups
        unescape: Turn ``$$`` into ``$`` instead of keeping it

    Returns:
        Number of references substituted

    Raises:
        CircularReferenceError: If a string references its own path
    """
    if not is_table(node) and not isinstance(node, list):
        # Scalars other than strings cannot hold references
        return 0

    count = 0
    # (container, dotted path of the container or None below an array)
    stack: List[Tuple[Any, Optional[str]]] = [(node, "" if node is root else None)]
    while stack:
        container, path = stack.pop()
        if is_table(container):
            items = list(container.items())
        else:
            items = list(enumerate(container))

        for key, value in items:
            # Only table keys are addressable by references
            child_path = _child_path(path, key) if is_table(container) else None
            if isinstance(value, str):
                resolved, substitutions = resolve_string(value, root, unescape=unescape, path=child_path)
                if resolved != value:
                    container[key] = resolved
                count += substitutions
            elif is_table(value) or is_array(value):
                if isinstance(value, tuple):
                    value = list(value)
                    container[key] = value
                stack.append((value, child_path))
    return count


def _child_path(path: Optional[str], key: str) -> Optional[str]:
    # Non-string keys and keys containing dots cannot be reached by a dotted reference
    if path is None or not isinstance(key, str) or "." in key:
        return None
    return f"{path}.{key}" if path else key


def resolve_string(
    text: str, root: Table, unescape: bool = True, path: Optional[str] = None
) -> tuple[str, int]:
    """Substitute the references found in a single string.

    Args:
        text: String to scan
        root: Root of the tree used for lookups
        unescape: Turn ``$$`` into ``$`` instead of keeping it
        path: Dotted path of the string in the tree, None if it cannot be referenced

    Returns:
        Tuple of (new text, number of references substituted)

    Raises:
        UnclosedReferenceError: If ``${`` has no closing ``}``
        NonScalarReferenceError: If a reference points at a table or array
        CircularReferenceError: If the string references its own path
    """
    if "$" not in text:
        return text, 0

    result: list[str] = []
    substitutions = 0
    index = 0
    length = len(text)

    while index < length:
        # Copy everything up to the next dollar sign verbatim
        dollar = text.find("$", index)
        if dollar == -1:
            result.append(text[index:])
            break
        result.append(text[index:dollar])

        following = text[dollar + 1] if dollar + 1 < length else ""
        if following == "$":
            result.append("$" if unescape else "$$")
            index = dollar + 2
        elif following == "{":
            end = text.find("}", dollar + 2)
            if end == -1:
                raise UnclosedReferenceError(text)
            body = text[dollar + 2 : end]
            if body == path:
                # Substituting would splice the string into itself and grow it every pass
                raise CircularReferenceError(path=path)
            value = lookup_path(root, body)
            if not is_scalar(value):
                raise NonScalarReferenceError(body)
            result.append(value_to_string(value))
            substitutions += 1
            index = end + 1
        else:
            # Lone dollar
            result.append("$")
            index = dollar + 1

    return "".join(result), substitutions


def lookup_path(root: Table, dotted: str) -> Any:
    """Get a value from the tree using a dotted path.

    Args:
        root: Root of the tree
        dotted: Dot-separated key path  # (e.g., "server.host")

    Returns:
        Value at the path  # (table, array or scalar)

    Raises:
        InvalidReferencePathError: If the path is empty or has an empty segment
        ReferenceNotFoundError: If the path does not exist
    """
    segments = dotted.split(".")
    if any(not segment for segment in segments):
        raise InvalidReferencePathError(dotted)

    current: Any = root
    for segment in segments:
        if not is_table(current) or segment not in current:
            raise ReferenceNotFoundError(dotted)
        current = current[segment]
    return current
