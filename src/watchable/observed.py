"""Observed containers — dicts and lists whose writes are intercepted.

A Watchable wraps every plain dict and list reachable from its value in an
ObservedDict/ObservedList. Reads behave like the built-in containers. Writes
are routed to the owning Watchable, which records the old value, drops
same-value writes, wraps new dicts/lists and dispatches a ChangeEvent.

Lists dispatch the way JavaScript arrays do: every mutation is a series of
index writes followed by a "length" write, each dispatched on its own. So
``lst.append(x)`` dispatches twice (index n, then length n -> n+1), and
``lst.sort()`` dispatches once per slot that moved and never for length.

Only plain dicts and lists are observed. Tuples, sets and custom objects
are stored as they are; mutating them in place is invisible.
"""

from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from typing import TYPE_CHECKING, Any, Generic, Iterable, Iterator, TypeVar

from watchable._path import is_container

if TYPE_CHECKING:
    from watchable.watchable import Watchable

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")

# returned by _peek() for a key or index that holds nothing
_MISSING = object()


def same_value(a: object, b: object) -> bool:
    """Strict equality: identity, or equal non-container values of the same type.

    Two distinct containers are never the same, however equal their contents.
    """
    if a is b:
        return True
    if is_container(a) or is_container(b):
        return False
    return type(a) is type(b) and bool(a == b)


class ObservedDict(Generic[KT, VT]):
    """A dict whose writes dispatch change events through its Watchable."""

    __slots__ = ("_owner", "_data")

    def __init__(self, owner: Watchable) -> None:
        self._owner = owner
        self._data: dict[KT, VT] = {}

    # --- Slot access used by the owner ---

    def _peek(self, key: KT) -> Any:
        return self._data.get(key, _MISSING)

    def _store(self, key: KT, value: VT) -> None:
        self._data[key] = value

    def _discard(self, key: KT) -> None:
        del self._data[key]

    # --- Read operations ---

    def __getitem__(self, key: KT) -> VT:
        return self._data[key]

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        return self._data.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[KT]:
        return iter(self._data)

    def keys(self):
        return self._data.keys()

    def values(self):
        return self._data.values()

    def items(self):
        return self._data.items()

    def __bool__(self) -> bool:
        return bool(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObservedDict):
            other = other._data
        return self._data == other

    def copy(self) -> dict[KT, VT]:
        """Shallow plain-dict copy. Nested containers stay observed."""
        return dict(self._data)

    # --- Write operations (dispatch) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        self._owner._write(self, key, value)

    def __delitem__(self, key: KT) -> None:
        with self._owner._lock:
            if key not in self._data:
                raise KeyError(key)
            self._owner._delete(self, key)

    def pop(self, key: KT, default: Any = _MISSING) -> VT:
        with self._owner._lock:
            if key not in self._data:
                if default is _MISSING:
                    raise KeyError(key)
                return default
            value = self._data[key]
            self._owner._delete(self, key)
            return value

    def popitem(self) -> tuple[KT, VT]:
        with self._owner._lock:
            if not self._data:
                raise KeyError("popitem(): dictionary is empty")
            key = next(reversed(self._data))
            value = self._data[key]
            self._owner._delete(self, key)
            return key, value

    def update(self, other=(), **kwargs) -> None:
        with self._owner._lock:
            for key, value in dict(other, **kwargs).items():
                self._owner._write(self, key, value)

    def setdefault(self, key: KT, default: VT | None = None) -> VT:
        with self._owner._lock:
            if key not in self._data:
                self._owner._write(self, key, default)
            return self._data[key]

    def clear(self) -> None:
        with self._owner._lock:
            for key in list(self._data):
                self._owner._delete(self, key)

    def __repr__(self) -> str:
        return f"ObservedDict({self._data!r})"


class ObservedList(Generic[T]):
    """A list whose writes dispatch change events through its Watchable."""

    __slots__ = ("_owner", "_items")

    def __init__(self, owner: Watchable) -> None:
        self._owner = owner
        self._items: list[T] = []

    # --- Slot access used by the owner ---
    # Keys are int indexes or "length". Writing past the end pads with None
    # (the padding is not reported) and writing a smaller length truncates,
    # as JavaScript arrays do.

    def _peek(self, key: int) -> Any:
        return self._items[key] if key < len(self._items) else _MISSING

    def _store(self, key: int | str, value: Any) -> None:
        if key == "length":
            del self._items[value:]
            self._items.extend([None] * (value - len(self._items)))
        elif key < len(self._items):
            self._items[key] = value
        else:
            self._items.extend([None] * (key - len(self._items)))
            self._items.append(value)

    def _rewrite(self, items: list) -> None:
        """Write every slot of items in order, then the length.

        Index writes past the end grow the list as they land, so the length
        write reports the length from before the first of them.
        """
        with self._owner._lock:
            length = len(self._items)
            for index, item in enumerate(items):
                self._owner._write(self, index, item)
            self._owner._write(self, "length", len(items), old=length)

    def _splice(self, start: int, delete_count: int, items: Iterable[T] = ()) -> list[T]:
        with self._owner._lock:
            removed = self._items[start:start + delete_count]
            self._rewrite(self._items[:start] + list(items) + self._items[start + delete_count:])
            return removed

    def _index(self, index: int) -> int:
        size = len(self._items)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("list index out of range")
        return index

    # --- Read operations ---

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __reversed__(self) -> Iterator[T]:
        return reversed(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __bool__(self) -> bool:
        return bool(self._items)

    def index(self, item: T, *args) -> int:
        return self._items.index(item, *args)

    def count(self, item: T) -> int:
        return self._items.count(item)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObservedList):
            other = other._items
        return self._items == other

    def copy(self) -> list[T]:
        """Shallow plain-list copy. Nested containers stay observed."""
        return list(self._items)

    # --- Write operations (dispatch) ---

    def __setitem__(self, index, value) -> None:
        with self._owner._lock:
            if not isinstance(index, slice):
                self._owner._write(self, self._index(index), value)
                return
            start, stop, step = index.indices(len(self._items))
            if step == 1:
                self._splice(start, max(0, stop - start), value)
                return
            targets = range(start, stop, step)
            value = list(value)
            if len(value) != len(targets):
                raise ValueError(
                    f"attempt to assign sequence of size {len(value)} "
                    f"to extended slice of size {len(targets)}"
                )
            for target, item in zip(targets, value):
                self._owner._write(self, target, item)

    def __delitem__(self, index) -> None:
        with self._owner._lock:
            if not isinstance(index, slice):
                self._splice(self._index(index), 1)
                return
            doomed = set(range(*index.indices(len(self._items))))
            self._rewrite([item for i, item in enumerate(self._items) if i not in doomed])

    def append(self, item: T) -> None:
        with self._owner._lock:
            self._splice(len(self._items), 0, [item])

    def extend(self, items: Iterable[T]) -> None:
        with self._owner._lock:
            self._splice(len(self._items), 0, items)

    def __iadd__(self, items: Iterable[T]) -> ObservedList[T]:
        self.extend(items)
        return self

    def insert(self, index: int, item: T) -> None:
        with self._owner._lock:
            size = len(self._items)
            if index < 0:
                index = max(0, index + size)
            self._splice(min(index, size), 0, [item])

    def pop(self, index: int = -1) -> T:
        with self._owner._lock:
            if not self._items:
                raise IndexError("pop from empty list")
            return self._splice(self._index(index), 1)[0]

    def remove(self, item: T) -> None:
        with self._owner._lock:
            self._splice(self._items.index(item), 1)

    def clear(self) -> None:
        with self._owner._lock:
            self._splice(0, len(self._items))

    def sort(self, *, key=None, reverse: bool = False) -> None:
        with self._owner._lock:
            self._rewrite(sorted(self._items, key=key, reverse=reverse))

    def reverse(self) -> None:
        with self._owner._lock:
            self._rewrite(self._items[::-1])

    def __repr__(self) -> str:
        return f"ObservedList({self._items!r})"


MutableMapping.register(ObservedDict)
MutableSequence.register(ObservedList)


def is_observed(value: object) -> bool:
    return isinstance(value, (ObservedDict, ObservedList))


def deep_wrap(value: Any, owner: Watchable, _memo: dict[int, Any] | None = None) -> Any:
    """Wrap value and every dict/list nested in it for owner.

    Observed containers are returned untouched, so nothing is wrapped twice.
    The memo maps id(raw) -> wrapper for this pass, so shared and cyclic
    references end up pointing at one wrapper.
    """
    if is_observed(value) or not isinstance(value, (dict, list)):
        return value
    if _memo is None:
        _memo = {}
    if id(value) in _memo:
        return _memo[id(value)]

    if isinstance(value, dict):
        wrapped = ObservedDict(owner)
        _memo[id(value)] = wrapped
        for key, item in value.items():
            wrapped._data[key] = deep_wrap(item, owner, _memo)
    else:
        wrapped = ObservedList(owner)
        _memo[id(value)] = wrapped
        wrapped._items.extend(deep_wrap(item, owner, _memo) for item in value)
    return wrapped


def to_raw(value: Any, _memo: dict[int, Any] | None = None) -> Any:
    """Plain dict/list copy of an observed value. Other values pass through."""
    if not is_observed(value):
        return value
    if _memo is None:
        _memo = {}
    if id(value) in _memo:
        return _memo[id(value)]

    if isinstance(value, ObservedDict):
        raw: Any = {}
        _memo[id(value)] = raw
        for key, item in value._data.items():
            raw[key] = to_raw(item, _memo)
    else:
        raw = []
        _memo[id(value)] = raw
        raw.extend(to_raw(item, _memo) for item in value._items)
    return raw
