"""Environment variable configuration source."""

import logging
import os
import re
from typing import Any, List, Mapping, Optional

from .sources import ConfigEntry, ConfigSource

logger = logging.getLogger(__name__)

_INTEGER_PATTERN = re.compile(r"-?[0-9]+")
_FLOAT_PATTERN = re.compile(r"[+-]?([0-9]+\.[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class EnvSource(ConfigSource):
    """Source loading configuration from prefixed environment variables.

    Variable names are mapped to config paths by removing the prefix and the
    separator, splitting the rest on the separator and lowercasing every
    segment. With prefix ``APP`` and separator ``__``:

    - ``APP__DATABASE__HOST=localhost`` -> ``database.host = "localhost"``
    - ``APP__SERVER__PORT=8080`` -> ``server.port = 8080``

    Values are coerced with ``coerce_value``.
    """

    def __init__(self, prefix: str, separator: str = "__", environ: Optional[Mapping[str, str]] = None):
        """Initialize environment source.

        Args:
            prefix: Prefix identifying relevant variables  # (e.g., "MYAPP")
            separator: Separator between path segments  # (e.g., "__")
            environ: Variables to read, ``os.environ`` at the time entries are produced by default
        """
        if not separator:
            raise ValueError("Environment separator must not be empty")
        self.prefix = prefix
        self.separator = separator
        self.environ = environ

    def entries(self) -> List[ConfigEntry]:
        environ = os.environ if self.environ is None else self.environ
        prefix_with_sep = f"{self.prefix}{self.separator}"
        entries = []

        # Sorted so the result does not depend on the process environment order
        for key in sorted(environ):
            if not key.startswith(prefix_with_sep):
                continue
            path_str = key[len(prefix_with_sep) :]
            if not path_str:
                continue

            path = [segment.lower() for segment in path_str.split(self.separator)]
            entries.append(ConfigEntry.at_path(path, coerce_value(environ[key])))

        logger.debug("Collected %d entries from environment prefix %s", len(entries), prefix_with_sep)
        return entries

    def __repr__(self) -> str:
        return f"EnvSource(prefix={self.prefix!r}, separator={self.separator!r})"


def coerce_value(text: str) -> Any:
    """Coerce an environment string to the most specific value type.

    - ``true`` / ``false`` in any case -> bool
    - optional minus followed by digits within 64 bits -> int (leading zeros allowed)
    - containing a dot and parsable as a float -> float
    - anything else -> str

    Args:
        text: Raw environment value

    Returns:
        Coerced value
    """
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if _INTEGER_PATTERN.fullmatch(text):
        number = int(text, 10)
        if INT64_MIN <= number <= INT64_MAX:
            return number

    # Only plain decimal notation, float() alone would also take "1_0.5" or " 1.5"
    if "." in text and _FLOAT_PATTERN.fullmatch(text):
        return float(text)

    return text
