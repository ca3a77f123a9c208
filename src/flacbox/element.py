"""The audio element interface the sequencer drives.

An element holds exactly one source at a time.  Loading and starting
playback are asynchronous: the outcome arrives later as an event or as the
result of the :class:`~concurrent.futures.Future` returned by ``play()``.

Events
------
- loadedmetadata : duration of the current source is known.
- timeupdate     : playback position moved.
- play / pause   : playback actually started / stopped.
- ended          : the source played to its end.
- volumechange   : ``volume`` or ``muted`` changed.
- error          : decoding or I/O failed; the detail is the exception.
"""

from __future__ import annotations

from collections import defaultdict
from concurrent.futures import Future
from typing import Callable, Protocol

LOADEDMETADATA = "loadedmetadata"
TIMEUPDATE = "timeupdate"
PLAY = "play"
PAUSE = "pause"
ENDED = "ended"
VOLUMECHANGE = "volumechange"
ERROR = "error"

EVENTS: tuple[str, ...] = (
    LOADEDMETADATA, TIMEUPDATE, PLAY, PAUSE, ENDED, VOLUMECHANGE, ERROR,
)

Listener = Callable[[object], None]


class PlaybackError(Exception):
    """Playback could not be started or was aborted by a decode/IO error."""


class AudioElement(Protocol):
    volume: float
    muted: bool

    @property
    def duration(self) -> float: ...

    @property
    def current_time(self) -> float: ...

    def set_source(self, url: str | None) -> None: ...

    def load(self) -> None: ...

    def play(self) -> Future[None]: ...

    def pause(self) -> None: ...

    def seek(self, time: float) -> None: ...

    def add_event_listener(self, event: str, handler: Listener) -> None: ...

    def remove_event_listener(self, event: str, handler: Listener) -> None: ...


class EventTarget:
    """Listener bookkeeping shared by element implementations."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add_event_listener(self, event: str, handler: Listener) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown audio event '{event}'.")
        self._listeners[event].append(handler)

    def remove_event_listener(self, event: str, handler: Listener) -> None:
        try:
            self._listeners[event].remove(handler)
        except ValueError:
            pass

    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())

    def dispatch(self, event: str, detail: object = None) -> None:
        """Call every listener of *event* with *detail*."""
        for handler in list(self._listeners[event]):
            handler(detail)
