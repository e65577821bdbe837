"""watchable: observable values with deep change notification and conditional waits."""

from importlib.metadata import version as _version

__version__ = _version("watchable")

from watchable.errors import WatchableError, NotAContainerError
from watchable.events import ChangeEvent, Condition
from watchable.observed import ObservedDict, ObservedList, to_raw
from watchable.watchable import Watchable
# textual NOT auto-imported — opt-in only

__all__ = [
    "Watchable",
    "ChangeEvent",
    "Condition",
    "ObservedDict",
    "ObservedList",
    "to_raw",
    "WatchableError",
    "NotAContainerError",
]
