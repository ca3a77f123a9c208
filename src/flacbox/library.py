"""Music library: turns a directory tree into a playlist of tracks.

Expected directory layout (any nesting depth works)::

    <public_root>/
        music/                      <- basepath
            Artist - Album/
                01 - Artist - First Track.flac
                cover.jpg
            Loose Track.flac

Every file whose extension matches is one :class:`Track`.  Metadata is taken
from embedded tags where present and guessed from the file name otherwise;
cover art is looked up next to the file.  ``url`` and ``cover`` are relative
to *public_root*, which is the directory the HTTP layer serves statically.

Directory entries are visited in sorted order so that repeated scans of an
unchanged tree yield the same playlist.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from flacbox.artwork import DEFAULT_COVER, cover_url, find_art
from flacbox.filename import UNKNOWN_ARTIST, guess_from_stem
from flacbox.tags import TagInfo, read_tags

log = logging.getLogger(__name__)

AUDIO_EXTENSIONS: frozenset[str] = frozenset({".flac"})
UNKNOWN_ALBUM = "Unknown Album"


class LibraryScanError(Exception):
    """Raised when the directory tree itself cannot be traversed."""


@dataclass
class Track:
    """One playable audio file with its resolved metadata."""

    title: str
    artist: str
    album: str
    url: str
    cover: str
    year: int | None = None
    track: int | None = None
    genre: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "url": self.url,
            "cover": self.cover,
        }
        for key in ("year", "track", "genre"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def _relative_url(path: Path, root: Path) -> str:
    return os.path.relpath(path, root).replace(os.sep, "/")


class MusicLibrary:
    """Read-only view on a directory of audio files."""

    def __init__(
        self,
        basepath: str | Path,
        public_root: str | Path | None = None,
        *,
        extensions: Iterable[str] = AUDIO_EXTENSIONS,
        max_workers: int | None = None,
    ) -> None:
        self._basepath = Path(basepath)
        self._public_root = (
            Path(public_root) if public_root is not None else self._basepath.parent
        )
        self._extensions = frozenset(ext.lower() for ext in extensions)
        self._max_workers = max_workers

    @property
    def basepath(self) -> Path:
        return self._basepath

    @property
    def public_root(self) -> Path:
        return self._public_root

    def is_audio_file(self, path: Path) -> bool:
        return path.suffix.lower() in self._extensions

    def list_audio_files(self) -> list[Path]:
        """Return every audio file below *basepath*, depth first, sorted.

        Raises :class:`LibraryScanError` if any directory cannot be listed.
        """
        if not self._basepath.is_dir():
            raise LibraryScanError(f"Music directory not found: {self._basepath}")
        found: list[Path] = []
        self._walk(self._basepath, found)
        return found

    def _walk(self, directory: Path, found: list[Path]) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda e: e.name)
        except OSError as exc:
            raise LibraryScanError(f"Cannot list {directory}: {exc}") from exc
        for entry in entries:
            if entry.is_symlink() and entry.is_dir():
                continue
            if entry.is_dir():
                self._walk(entry, found)
            elif entry.is_file() and self.is_audio_file(entry):
                found.append(entry)

    def scan(self) -> list[Track]:
        """Resolve every audio file into a :class:`Track`.

        Per-file work runs on a thread pool; the result keeps traversal
        order and is only returned once every file has been resolved.
        """
        paths = self.list_audio_files()
        log.info("Scanning %d audio files in %s", len(paths), self._basepath)
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            tracks = list(executor.map(self.resolve_track, paths))
        return tracks

    def resolve_track(self, path: Path) -> Track:
        """Build a track for *path*, falling back to defaults on any error."""
        guess = guess_from_stem(path.stem)
        title, artist = guess.title, guess.artist

        tags = self._read_tags(path)
        if tags.title:
            title = tags.title
        if tags.artist:
            artist = tags.artist

        return Track(
            title=title or path.stem or path.name,
            artist=artist or UNKNOWN_ARTIST,
            album=tags.album or UNKNOWN_ALBUM,
            url=_relative_url(path, self._public_root),
            cover=self._cover_for(path),
            year=tags.year,
            track=tags.track,
            genre=tags.genre,
        )

    def _read_tags(self, path: Path) -> TagInfo:
        try:
            tags = read_tags(path)
        except Exception:
            log.exception("Unexpected error reading tags from %s", path)
            tags = None
        return tags if tags is not None else TagInfo()

    def _cover_for(self, path: Path) -> str:
        try:
            return cover_url(find_art(path.parent, path.name), self._public_root)
        except Exception:
            log.exception("Unexpected error finding artwork for %s", path)
            return DEFAULT_COVER


def scan_directory(
    basepath: str | Path, public_root: str | Path | None = None
) -> list[Track]:
    """Scan *basepath* with default settings."""
    return MusicLibrary(basepath, public_root).scan()
