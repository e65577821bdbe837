"""Property paths — dotted/bracketed keys resolved against a value graph.

    employees[0].name["last"]      ->  ("employees", "0", "name", "last")
    q.interests.length             ->  ("q", "interests", "length")

Resolution never raises. Conditions routinely point at paths that don't
exist yet, so a failed lookup is logged at DEBUG and resolves to None.
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Mapping, Sequence

logger = logging.getLogger("watchable.path")

# identifier followed by a separator or the end, a quoted bracket key, or [0]
_SEGMENT = re.compile(
    r"""(?P<ident>\w+)(?=[.\[]|$)"""
    r"""|\["(?P<double>[^"]*)"\]"""
    r"""|\['(?P<single>[^']*)'\]"""
    r"""|\[(?P<index>\d+)\]""",
    re.ASCII,
)


def is_container(value: object) -> bool:
    """True for mappings and non-string sequences (the "object/array" values)."""
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


@functools.lru_cache(maxsize=256)
def parse_path(path: str) -> tuple[str, ...]:
    """Split a property path into its keys."""
    return tuple(match.group(match.lastgroup) for match in _SEGMENT.finditer(path))


def _lookup(value: object, key: str) -> object:
    if value is None:
        raise TypeError(f"cannot read {key!r} of None")
    if isinstance(value, Mapping):
        return value[key]
    if isinstance(value, Sequence):
        if key == "length":
            return len(value)
        return value[int(key)]
    return getattr(value, key)


def resolve_path(root: object, path: str) -> tuple[object, object]:
    """Resolve path against root. Returns (value, immediate parent container).

    The parent advances to each container passed through, so on failure it
    is left at the last container reached.
    """
    value, parent = root, None
    try:
        for key in parse_path(path):
            if is_container(value):
                parent = value
            value = _lookup(value, key)
    except (LookupError, TypeError, ValueError, AttributeError):
        logger.debug("Could not resolve property path %r", path, exc_info=True)
        value = None
    return value, parent
