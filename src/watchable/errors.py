"""Exceptions raised by watchable.

Only usage errors are raised. Path lookups that fail are not errors: they
resolve to None so that conditions can wait on paths that don't exist yet.
"""


class WatchableError(Exception):
    """Base class for errors raised by this package."""


class NotAContainerError(WatchableError, TypeError):
    """A property-path overload was used while the root value is not a dict or list.

    Raised by ``Watchable.when(path, value_or_predicate, callback)`` and the
    matching ``promise_when`` shape. Paths are resolved against the root, so
    a scalar root has nothing to resolve them against.
    """

    def __init__(self, root: object) -> None:
        self.root = root
        super().__init__(
            "Cannot use a property-path condition when the Watchable is not "
            f"wrapping a container (current value: {root!r})"
        )
