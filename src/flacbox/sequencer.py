"""Playback sequencer: a playlist, a cursor and one audio element.

States
------
- IDLE    : nothing loaded (empty playlist or destroyed).
- LOADING : a track's source was set; waiting for its metadata.
- READY   : metadata known, not playing.
- PLAYING : the element reported that playback started.
- PAUSED  : the element reported that playback stopped.
- ENDED   : the current track finished (immediately followed by LOADING).
- ERROR   : the element reported a decode or I/O error.

Allowed transitions
-------------------
    IDLE            --load_track(i)-->       LOADING
    LOADING         --loadedmetadata-->      READY
    READY / PAUSED  --play()-->              PLAYING
    PLAYING         --pause()-->             PAUSED
    PLAYING         --ended-->               ENDED --next()--> LOADING

next() and prev() wrap around the playlist and always start playing, even
when the sequencer was paused.  Every transport operation is a no-op on an
empty playlist.

The sequencer itself never raises for playback problems: failures to start
are reported through ``on_playback_failed`` and element errors through
``on_error``.
"""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from enum import Enum, auto
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Iterable

from flacbox.element import (
    ENDED,
    ERROR,
    LOADEDMETADATA,
    PAUSE,
    PLAY,
    TIMEUPDATE,
    VOLUMECHANGE,
)

if TYPE_CHECKING:
    from flacbox.element import AudioElement
    from flacbox.library import Track

log = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.7


class State(Enum):
    IDLE = auto()
    LOADING = auto()
    READY = auto()
    PLAYING = auto()
    PAUSED = auto()
    ENDED = auto()
    ERROR = auto()


@dataclass
class PlaybackState:
    current_index: int = 0
    is_playing: bool = False
    is_muted: bool = False
    volume: float = 0.7
    current_time: float = 0.0
    duration: float = 0.0


@dataclass
class Callbacks:
    """Observer slots; a host sets only the ones it cares about.

    Every callback receives the sequencer as its last argument.
    """

    on_init: Callable[..., Any] | None = None
    on_track_change: Callable[..., Any] | None = None
    on_track_loaded: Callable[..., Any] | None = None
    on_play: Callable[..., Any] | None = None
    on_pause: Callable[..., Any] | None = None
    on_time_update: Callable[..., Any] | None = None
    on_volume_change: Callable[..., Any] | None = None
    on_mute: Callable[..., Any] | None = None
    on_unmute: Callable[..., Any] | None = None
    on_playback_failed: Callable[..., Any] | None = None
    on_error: Callable[..., Any] | None = None
    on_playlist_change: Callable[..., Any] | None = None
    on_destroy: Callable[..., Any] | None = None


def format_time(seconds: float | None) -> str:
    """Format *seconds* as ``m:ss``."""
    total = int(seconds or 0)
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


class Sequencer:
    """Sequences playback of a playlist on a single audio element."""

    def __init__(
        self,
        audio: AudioElement,
        playlist: Iterable[Track] | None = None,
        *,
        autoplay: bool = False,
        volume: float = DEFAULT_VOLUME,
        callbacks: Callbacks | None = None,
    ) -> None:
        if not 0 <= volume <= 1:
            log.warning("Volume %s out of range, using %s", volume, DEFAULT_VOLUME)
            volume = DEFAULT_VOLUME
        self._audio = audio
        self._playlist: list[Track] = list(playlist or [])
        self._callbacks = callbacks or Callbacks()
        self._state = State.IDLE
        self._playback = PlaybackState(volume=volume)
        self._destroyed = False
        # Bumped on every load so late play() results for older tracks are ignored.
        self._generation = 0
        self._listeners = {
            TIMEUPDATE: self._on_time_update,
            ENDED: self._on_ended,
            LOADEDMETADATA: self._on_loaded_metadata,
            PLAY: self._on_play,
            PAUSE: self._on_pause,
            VOLUMECHANGE: self._on_volume_change,
            ERROR: self._on_error,
        }

        self._audio.volume = volume
        for event, handler in self._listeners.items():
            self._audio.add_event_listener(event, handler)

        if self._playlist:
            self.load_track(0)
            if autoplay:
                self.play()

        self._notify("on_init")

    # -- public properties ---------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def playback(self) -> PlaybackState:
        return self._playback

    @property
    def current_index(self) -> int:
        return self._playback.current_index

    @property
    def current_track(self) -> Track | None:
        if not self._playlist:
            return None
        return self._playlist[self._playback.current_index]

    @property
    def playlist(self) -> list[Track]:
        return list(self._playlist)

    @property
    def is_playing(self) -> bool:
        return self._playback.is_playing

    # -- transitions ---------------------------------------------------------

    def load_track(self, index: int) -> Track | None:
        """Point the element at the track at *index*.

        Returns the track, or ``None`` (and changes nothing) when *index*
        is outside the playlist.
        """
        if self._destroyed or not 0 <= index < len(self._playlist):
            return None
        track = self._playlist[index]
        self._generation += 1
        self._playback.current_index = index
        self._playback.current_time = 0.0
        self._playback.duration = 0.0
        self._state = State.LOADING
        self._audio.set_source(track.url)
        self._audio.load()
        log.debug("Loading [%d/%d] %s", index + 1, len(self._playlist), track.url)
        self._notify("on_track_change", track)
        return track

    def play(self) -> None:
        """Ask the element to start; failure is reported, never raised."""
        if not self._active():
            return
        future = self._audio.play()
        future.add_done_callback(partial(self._on_play_result, self._generation))

    def pause(self) -> None:
        if not self._active():
            return
        self._audio.pause()

    def toggle_play(self) -> None:
        if not self._active():
            return
        if self._playback.is_playing:
            self.pause()
        else:
            self.play()

    def next(self) -> None:
        """Advance to the next track (wrapping around) and play it."""
        if not self._active():
            return
        index = (self._playback.current_index + 1) % len(self._playlist)
        self.load_track(index)
        self.play()

    def prev(self) -> None:
        """Go back to the previous track (wrapping around) and play it."""
        if not self._active():
            return
        index = (self._playback.current_index - 1) % len(self._playlist)
        self.load_track(index)
        self.play()

    def set_volume(self, volume: float) -> None:
        """Set the volume; values outside ``[0, 1]`` are ignored."""
        if not self._active():
            return
        if not 0 <= volume <= 1:
            return
        self._playback.volume = volume
        self._audio.volume = volume

    def mute(self) -> None:
        if not self._active():
            return
        self._playback.is_muted = True
        self._audio.muted = True
        self._notify("on_mute")

    def unmute(self) -> None:
        if not self._active():
            return
        self._playback.is_muted = False
        self._audio.muted = False
        self._notify("on_unmute")

    def toggle_mute(self) -> None:
        if self._playback.is_muted:
            self.unmute()
        else:
            self.mute()

    def seek(self, time: float) -> None:
        """Jump to *time* seconds; ignored outside the current track."""
        if not self._active():
            return
        if 0 <= time <= self._playback.duration:
            self._audio.seek(time)
            self._playback.current_time = time

    def seek_by_percentage(self, percentage: float) -> None:
        if 0 <= percentage <= 1:
            self.seek(self._playback.duration * percentage)

    # -- playlist ------------------------------------------------------------

    def set_playlist(self, tracks: Iterable[Track]) -> None:
        """Replace the playlist and load its first track."""
        if self._destroyed:
            return
        self._playlist = list(tracks)
        self._playback.current_index = 0
        if self._playlist:
            self.load_track(0)
        else:
            self._unload()
        self._notify("on_playlist_change", self.playlist)

    def add_track(self, track: Track) -> int:
        """Append *track*; returns its index, or -1 once destroyed."""
        if self._destroyed:
            return -1
        self._playlist.append(track)
        self._notify("on_playlist_change", self.playlist)
        return len(self._playlist) - 1

    def remove_track(self, index: int) -> bool:
        """Remove the track at *index*; ``False`` if out of range.

        Removing the current track loads the one that takes its place (or
        the first one if it was last) and keeps playing if it was playing.
        """
        if self._destroyed or not 0 <= index < len(self._playlist):
            return False

        current = self._playback.current_index
        del self._playlist[index]

        if index == current:
            was_playing = self._playback.is_playing
            if self._playlist:
                self.load_track(index if index < len(self._playlist) else 0)
                if was_playing:
                    self.play()
            else:
                self._unload()
        elif index < current:
            self._playback.current_index = current - 1

        self._notify("on_playlist_change", self.playlist)
        return True

    def destroy(self) -> None:
        """Release the element and detach from it.  Safe to call twice."""
        if self._destroyed:
            return
        self._audio.pause()
        self._audio.set_source(None)
        self._audio.load()
        for event, handler in self._listeners.items():
            self._audio.remove_event_listener(event, handler)
        self._destroyed = True
        self._playback.is_playing = False
        self._state = State.IDLE
        self._notify("on_destroy")

    # -- element event handlers ----------------------------------------------

    def _on_loaded_metadata(self, _detail: object = None) -> None:
        self._playback.duration = self._audio.duration
        if self._state is State.LOADING:
            self._state = State.READY
        self._notify("on_track_loaded", self.current_track)

    def _on_play(self, _detail: object = None) -> None:
        self._playback.is_playing = True
        self._state = State.PLAYING
        self._notify("on_play", self.current_track)

    def _on_pause(self, _detail: object = None) -> None:
        self._playback.is_playing = False
        if self._state is State.PLAYING:
            self._state = State.PAUSED
        self._notify("on_pause", self.current_track)

    def _on_ended(self, _detail: object = None) -> None:
        self._playback.is_playing = False
        self._state = State.ENDED
        self.next()

    def _on_time_update(self, _detail: object = None) -> None:
        self._playback.current_time = self._audio.current_time
        self._notify(
            "on_time_update", self._playback.current_time, self._playback.duration
        )

    def _on_volume_change(self, _detail: object = None) -> None:
        self._notify("on_volume_change", self._audio.volume)

    def _on_error(self, error: object = None) -> None:
        log.error("Audio error: %s", error)
        self._playback.is_playing = False
        self._state = State.ERROR
        self._notify("on_error", error)

    def _on_play_result(self, generation: int, future: Future[None]) -> None:
        try:
            exc = future.exception()
        except CancelledError:
            return
        if exc is None or self._destroyed:
            return
        if generation != self._generation:
            log.debug("Ignoring play failure for a replaced track: %s", exc)
            return
        log.error("Playback failed: %s", exc)
        self._playback.is_playing = False
        if self._state is State.PLAYING:
            self._state = State.PAUSED
        self._notify("on_playback_failed", exc)

    # -- internal helpers ----------------------------------------------------

    def _active(self) -> bool:
        return bool(self._playlist) and not self._destroyed

    def _unload(self) -> None:
        """Drop the element's source after the playlist became empty."""
        self._audio.pause()
        self._audio.set_source(None)
        self._playback.current_index = 0
        self._playback.is_playing = False
        self._playback.current_time = 0.0
        self._playback.duration = 0.0
        self._state = State.IDLE

    def _notify(self, name: str, *args: Any) -> None:
        callback = getattr(self._callbacks, name)
        if callback is not None:
            callback(*args, self)
