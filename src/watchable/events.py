"""Change events and listener conditions."""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class ChangeEvent(Generic[T]):
    """One intercepted write.

    Root writes (``w.value = x``) and the immediate events built by
    ``when()`` carry no ``property``/``target``. Writes below the root
    describe the slot that changed, however deep: ``target`` is the
    observed container holding it and ``property`` its key as a string.

    ``old_value``/``new_value`` are shallow. Containers are observed in
    place, so a slot holding a container whose grandchild changed is never
    reported; the grandchild's own write is.

    ``res`` is only filled in for listeners registered with a property
    path: it holds that path's resolution at dispatch time.
    """

    __slots__ = ("new_value", "old_value", "property", "target", "root", "res")

    def __init__(
        self,
        new_value: Any,
        old_value: Any,
        *,
        property: str | None = None,
        target: Any = None,
        root: T | None = None,
        res: Any = None,
    ) -> None:
        self.new_value = new_value
        self.old_value = old_value
        self.property = property
        self.target = target
        self.root = root
        self.res = res

    def __repr__(self) -> str:
        return (
            f"ChangeEvent(property={self.property!r}, "
            f"old_value={self.old_value!r}, new_value={self.new_value!r})"
        )


Predicate = Callable[[ChangeEvent[Any]], Any]
Callback = Callable[[ChangeEvent[Any]], None]


class Condition:
    """Gate for a listener: it only fires when predicate(event) is truthy.

    With a property_path, the event's ``res`` is set to that path's
    resolution before the predicate runs.
    """

    __slots__ = ("predicate", "property_path")

    def __init__(self, predicate: Predicate, property_path: str | None = None) -> None:
        self.predicate = predicate
        self.property_path = property_path

    def __repr__(self) -> str:
        return f"Condition({self.predicate!r}, property_path={self.property_path!r})"
