"""Audio element backed by sounddevice and soundfile.

Uses ALSA directly via PortAudio, with no PulseAudio dependency.

Decoding runs on a worker thread.  Events raised there are queued and only
delivered when the host calls :meth:`SoundDeviceAudio.check_events`, so
listeners always run on the host's thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from pathlib import Path

import sounddevice as sd
import soundfile as sf

from flacbox.element import (
    ENDED,
    ERROR,
    LOADEDMETADATA,
    PAUSE,
    PLAY,
    TIMEUPDATE,
    VOLUMECHANGE,
    EventTarget,
    PlaybackError,
)

log = logging.getLogger(__name__)

# Number of frames to read per chunk during streaming playback.
_BLOCK_SIZE = 2048
# Emit a timeupdate every this many blocks (~0.5 s at 44.1 kHz).
_TIMEUPDATE_BLOCKS = 10
# Internal queue item that settles a play() future.
_SETTLE = "_settle"
# Events tied to a particular source; dropped when the source changes.
_SOURCE_EVENTS = frozenset({LOADEDMETADATA, TIMEUPDATE, PLAY, ENDED, ERROR})


class SoundDeviceAudio(EventTarget):
    """Streams one audio file at a time through an ALSA output stream.

    Parameters
    ----------
    base_dir:
        Directory that source URLs are relative to (the public root).
    """

    def __init__(self, base_dir: str | Path = ".") -> None:
        super().__init__()
        self._base_dir = Path(base_dir)
        self._source: Path | None = None
        self._events: queue.SimpleQueue[tuple[str, object]] = queue.SimpleQueue()
        self._paused = threading.Event()
        self._paused.set()  # starts in "not paused" state
        self._stop_event = threading.Event()
        self._playback_thread: threading.Thread | None = None
        self._playing = False
        self._volume = 1.0
        self._muted = False
        self._duration = 0.0
        self._samplerate = 0
        self._position = 0  # frames
        self._seek_to: int | None = None

    # -- properties ----------------------------------------------------------

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = float(value)
        self._post(VOLUMECHANGE)

    @property
    def muted(self) -> bool:
        return self._muted

    @muted.setter
    def muted(self, value: bool) -> None:
        self._muted = bool(value)
        self._post(VOLUMECHANGE)

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def current_time(self) -> float:
        if not self._samplerate:
            return 0.0
        return self._position / self._samplerate

    @property
    def source(self) -> Path | None:
        return self._source

    # -- element interface ---------------------------------------------------

    def set_source(self, url: str | None) -> None:
        """Replace the current source; stops whatever was playing."""
        self._stop_thread()
        self._discard_stale_events()
        self._source = self._base_dir / url if url else None
        self._duration = 0.0
        self._samplerate = 0
        self._position = 0
        self._seek_to = None

    def load(self) -> None:
        """Read the header of the current source and report its duration."""
        self._stop_thread()
        self._position = 0
        if self._source is None:
            return
        try:
            info = sf.info(str(self._source))
        except Exception as exc:
            log.error("Audio: cannot load %s: %s", self._source, exc)
            self._post(ERROR, PlaybackError(f"Cannot load {self._source}: {exc}"))
            return
        self._samplerate = info.samplerate
        self._duration = info.frames / info.samplerate if info.samplerate else 0.0
        self._post(LOADEDMETADATA)

    def play(self) -> Future[None]:
        """Start or resume playback; the future settles on the next pump."""
        future: Future[None] = Future()
        if self._source is None:
            self._post(_SETTLE, (future, PlaybackError("No source loaded.")))
            return future

        if self._playback_thread is not None and self._playback_thread.is_alive():
            if not self._playing:
                self._playing = True
                self._paused.set()
                self._post(PLAY)
            self._post(_SETTLE, (future, None))
            return future

        self._stop_event.clear()
        self._paused.set()
        self._playing = True
        self._playback_thread = threading.Thread(
            target=self._stream_file,
            args=(self._source, self._position, future),
            daemon=True,
        )
        self._playback_thread.start()
        return future

    def pause(self) -> None:
        """Pause the current source; resuming continues where it stopped."""
        self._paused.clear()
        if self._playing:
            self._playing = False
            self._post(PAUSE)

    def seek(self, time: float) -> None:
        frame = int(time * self._samplerate)
        if self._playback_thread is not None and self._playback_thread.is_alive():
            self._seek_to = frame
        self._position = frame
        self._post(TIMEUPDATE)

    # -- event pump ----------------------------------------------------------

    def check_events(self) -> None:
        """Deliver queued events and settle pending play() futures.

        Must be called periodically (e.g. from the main loop).
        """
        while True:
            try:
                event, detail = self._events.get_nowait()
            except queue.Empty:
                return
            if event == _SETTLE:
                future, exc = detail  # type: ignore[misc]
                if exc is None:
                    future.set_result(None)
                else:
                    future.set_exception(exc)
            else:
                self.dispatch(event, detail)

    # -- internal ------------------------------------------------------------

    def _post(self, event: str, detail: object = None) -> None:
        self._events.put((event, detail))

    def _discard_stale_events(self) -> None:
        """Drop queued events that belong to the outgoing source."""
        kept = []
        while True:
            try:
                item = self._events.get_nowait()
            except queue.Empty:
                break
            if item[0] not in _SOURCE_EVENTS:
                kept.append(item)
        for item in kept:
            self._events.put(item)

    def _stop_thread(self) -> None:
        self._stop_event.set()
        self._paused.set()  # unblock the thread if it is waiting on pause
        if self._playback_thread is not None:
            self._playback_thread.join(timeout=2.0)
            self._playback_thread = None
        if self._playing:
            self._playing = False
            self._post(PAUSE)

    def _stream_file(self, file_path: Path, start_frame: int, future: Future[None]) -> None:
        """Worker that streams *file_path* through an ALSA output stream."""
        started = False
        try:
            with sf.SoundFile(str(file_path)) as f:
                if start_frame:
                    f.seek(start_frame)
                stream = sd.OutputStream(
                    samplerate=f.samplerate,
                    channels=f.channels,
                    dtype="float32",
                )
                stream.start()
                started = True
                self._post(_SETTLE, (future, None))
                self._post(PLAY)
                try:
                    blocks = 0
                    while True:
                        self._paused.wait()
                        if self._stop_event.is_set():
                            return
                        if self._seek_to is not None:
                            f.seek(self._seek_to)
                            self._position = self._seek_to
                            self._seek_to = None
                        data = f.read(_BLOCK_SIZE, dtype="float32")
                        if len(data) == 0:
                            break
                        gain = 0.0 if self._muted else self._volume
                        stream.write(data * gain)
                        self._position += len(data)
                        blocks += 1
                        if blocks % _TIMEUPDATE_BLOCKS == 0:
                            self._post(TIMEUPDATE)
                finally:
                    stream.stop()
                    stream.close()
        except Exception as exc:
            log.error("Audio: playback error: %s", exc)
            self._playing = False
            error = PlaybackError(f"Playback of {file_path} failed: {exc}")
            if started:
                self._post(ERROR, error)
            else:
                self._post(_SETTLE, (future, error))
            return

        # Only signal track-end when playback finished naturally.
        if not self._stop_event.is_set():
            self._playing = False
            self._post(ENDED)
