"""Listener registry — callbacks with one-shot and predicate-gated options.

Listeners are keyed by the callback itself, so registering a callback
again replaces its options and moves it to the end of dispatch order.
Keep a reference to the callback if you intend to remove it later.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from watchable.events import Callback, ChangeEvent, Condition

logger = logging.getLogger("watchable.registry")


class ListenerEntry:
    """A registered callback and its options."""

    __slots__ = ("callback", "once", "condition")

    def __init__(self, callback: Callback, once: bool = False, condition: Condition | None = None) -> None:
        self.callback = callback
        self.once = once
        self.condition = condition

    def __repr__(self) -> str:
        return f"ListenerEntry({self.callback!r}, once={self.once}, condition={self.condition!r})"


class ListenerRegistry:
    """Ordered callback -> ListenerEntry map with snapshot dispatch."""

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: dict[Callback, ListenerEntry] = {}
        self._lock = threading.RLock()

    def add(self, callback: Callback, *, once: bool = False, condition: Condition | None = None) -> None:
        """Register callback, replacing any earlier registration of it."""
        with self._lock:
            self._entries.pop(callback, None)
            self._entries[callback] = ListenerEntry(callback, once, condition)

    def remove(self, callback: Callback) -> None:
        """Unregister callback. No-op if it isn't registered."""
        with self._lock:
            self._entries.pop(callback, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, callback: object) -> bool:
        return callback in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def dispatch(self, event: ChangeEvent[Any], resolve: Callable[[str], Any]) -> None:
        """Run every listener whose condition passes for event.

        Iterates a snapshot taken on entry: listeners added while
        dispatching wait for the next event, and listeners removed or
        replaced while dispatching are skipped. A one-shot listener is
        removed before its callback runs, so a write made from inside the
        callback can't fire it a second time.
        """
        with self._lock:
            snapshot = list(self._entries.values())

        for entry in snapshot:
            if not self._is_current(entry):
                continue

            condition = entry.condition
            if condition is not None:
                event.res = resolve(condition.property_path) if condition.property_path else None
                if not condition.predicate(event):
                    continue

            if entry.once:
                with self._lock:
                    if self._entries.get(entry.callback) is not entry:
                        continue
                    del self._entries[entry.callback]
                logger.debug("Removed one-shot listener %r", entry.callback)

            entry.callback(event)

    def _is_current(self, entry: ListenerEntry) -> bool:
        with self._lock:
            return self._entries.get(entry.callback) is entry

    def __repr__(self) -> str:
        return f"ListenerRegistry({len(self._entries)} listeners)"
