"""Watchable — a value that reports every change made to it, however deep.

    w = Watchable({"user": {"name": "Ada", "tags": []}})
    w.add_change_listener(lambda e: print(e.property, e.old_value, e.new_value))

    w.value["user"]["name"] = "Grace"     # name Ada Grace
    w.value["user"]["tags"].append("x")   # 0 None x, then length 0 1

Dispatch is synchronous: listeners run inline, on the writing thread,
before the write returns. when() checks a condition now and either calls
back immediately or waits for the first change that satisfies it;
promise_when() is the awaitable form.

Writes and registrations are serialized by a per-instance RLock, so a
Watchable may be written from several threads, and listeners may write to
it while it is dispatching.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Generic, TypeVar, overload

from watchable._path import is_container, parse_path, resolve_path
from watchable._registry import ListenerRegistry
from watchable.errors import NotAContainerError
from watchable.events import Callback, ChangeEvent, Condition, Predicate
from watchable.observed import _MISSING, deep_wrap, same_value

T = TypeVar("T")

# _write() reads the old value from the target unless given one
_PEEK = object()


class Watchable(Generic[T]):
    """Wraps any value and notifies listeners when it, or anything inside it, changes.

    Dicts and lists in the value are replaced by ObservedDict/ObservedList
    wrappers; mutate them through ``.value`` to have the change reported.
    """

    __slots__ = ("_value", "_old_value", "_listeners", "_lock")

    def __init__(self, value: T | None = None) -> None:
        self._lock = threading.RLock()
        self._listeners = ListenerRegistry()
        self._old_value: Any = None
        self._value = deep_wrap(value, self)

    @property
    def value(self) -> T:
        """The current value. Containers are live observed references."""
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        with self._lock:
            old = self._value
            self._old_value = old
            if same_value(old, value):
                return
            self._value = deep_wrap(value, self)
            self._dispatch(ChangeEvent(self._value, old, root=self._value))

    @property
    def old_value(self) -> Any:
        """The previous value seen by the most recent write, anywhere in the graph."""
        return self._old_value

    # --- Write traps (called by observed containers) ---

    def _write(self, target, key, value, *, old: Any = _PEEK) -> None:
        with self._lock:
            if old is _PEEK:
                old = target._peek(key)
            if old is _MISSING:
                # a new key or index always dispatches, even for a None value
                old = None
            elif same_value(old, value):
                self._old_value = old
                return
            self._old_value = old
            stored = deep_wrap(value, self)
            target._store(key, stored)
            self._dispatch(ChangeEvent(stored, old, property=str(key), target=target, root=self._value))

    def _delete(self, target, key) -> None:
        with self._lock:
            old = target._peek(key)
            self._old_value = old
            target._discard(key)
            self._dispatch(ChangeEvent(None, old, property=str(key), target=target, root=self._value))

    def _dispatch(self, event: ChangeEvent[T]) -> None:
        self._listeners.dispatch(event, self._resolve)

    def _resolve(self, path: str) -> Any:
        if not is_container(self._value):
            return None
        return resolve_path(self._value, path)[0]

    # --- Listeners ---

    def add_change_listener(
        self,
        callback: Callback,
        *,
        once: bool = False,
        condition: Condition | None = None,
    ) -> None:
        """Call callback(event) on every change.

        once: remove the listener after its first call.
        condition: only call back when condition.predicate(event) is truthy.
            With condition.property_path, event.res holds that path's
            resolution (e.g. "employee.name.last") when the predicate runs.

        Registering the same callback again replaces its options.
        """
        with self._lock:
            self._listeners.add(callback, once=once, condition=condition)

    def remove_change_listener(self, callback: Callback) -> None:
        """Remove callback. Does nothing if it isn't registered."""
        with self._lock:
            self._listeners.remove(callback)

    def clear_listeners(self) -> None:
        """Remove every listener."""
        with self._lock:
            self._listeners.clear()

    # --- Conditional waits ---

    @overload
    def when(self, predicate: Predicate, callback: Callback, /) -> None: ...

    @overload
    def when(self, value: Any, callback: Callback, /) -> None: ...

    @overload
    def when(self, property_path: str, predicate: Predicate, callback: Callback, /) -> None: ...

    @overload
    def when(self, property_path: str, value: Any, callback: Callback, /) -> None: ...

    def when(self, *args: Any) -> None:
        """Call back as soon as a condition holds: now if it already does.

        when(predicate, callback)
            predicate(event) over the whole value.
        when(value, callback)
            the whole value is the same as value.
        when(property_path, value, callback)
            the value at property_path is the same as value.
        when(property_path, predicate, callback)
            predicate(event), with event.res holding the value at property_path.

        If the condition doesn't hold yet, this is add_change_listener with
        once=True and the condition as its gate. The property-path forms
        need the value to be a dict or list and raise NotAContainerError
        otherwise.
        """
        if len(args) == 3:
            self._when_path(*args)
        elif len(args) == 2:
            self._when_value(*args)
        else:
            raise TypeError(f"when() takes 2 or 3 positional arguments but {len(args)} were given")

    def _when_value(self, expected: Any, callback: Callback) -> None:
        with self._lock:
            current = self._value
            event = ChangeEvent(current, self._old_value, root=current)
            if callable(expected):
                predicate = expected
                satisfied = predicate(event)
            else:
                predicate = lambda e: same_value(e.new_value, expected)  # noqa: E731
                satisfied = same_value(current, expected)

            if satisfied:
                callback(event)
            else:
                self._listeners.add(callback, once=True, condition=Condition(predicate))

    def _when_path(self, property_path: str, expected: Any, callback: Callback) -> None:
        with self._lock:
            root = self._value
            if not is_container(root):
                raise NotAContainerError(root)

            res, parent = resolve_path(root, property_path)
            keys = parse_path(property_path)
            event = ChangeEvent(
                res,
                self._old_value,
                property=keys[-1] if keys else None,
                target=parent,
                root=root,
                res=res,
            )
            if callable(expected):
                predicate = expected
            else:
                predicate = lambda e: same_value(e.res, expected)  # noqa: E731

            if predicate(event):
                callback(event)
            else:
                self._listeners.add(
                    callback, once=True, condition=Condition(predicate, property_path)
                )

    @overload
    def promise_when(self, predicate: Predicate, /) -> asyncio.Future[None]: ...

    @overload
    def promise_when(self, value: Any, /) -> asyncio.Future[None]: ...

    @overload
    def promise_when(self, property_path: str, value_or_predicate: Any, /) -> asyncio.Future[None]: ...

    def promise_when(self, *args: Any) -> asyncio.Future[None]:
        """Awaitable when(): a future that resolves once the condition holds.

            await w.promise_when("job.status", "done")

        Takes the when() arguments minus the callback and must be called
        with an event loop running. The future is resolved through
        loop.call_soon_threadsafe, so it completes on a later loop turn
        even if the condition already holds, and writes from other threads
        are fine. Cancelling the future (or timing it out with
        asyncio.wait_for) removes the pending listener.
        """
        if len(args) not in (1, 2):
            raise TypeError(
                f"promise_when() takes 1 or 2 positional arguments but {len(args)} were given"
            )
        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()

        def _complete() -> None:
            if not future.done():
                future.set_result(None)

        def _on_condition(event: ChangeEvent[T]) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_complete)

        def _on_done(fut: asyncio.Future[None]) -> None:
            if fut.cancelled():
                self.remove_change_listener(_on_condition)

        future.add_done_callback(_on_done)
        self.when(*args, _on_condition)
        return future

    def __repr__(self) -> str:
        return f"Watchable({self._value!r}, listeners={len(self._listeners)})"
