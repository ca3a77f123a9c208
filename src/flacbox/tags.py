"""Read embedded tag metadata with mutagen."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from mutagen import File as MutagenFile
from mutagen import MutagenError

log = logging.getLogger(__name__)


@dataclass
class TagInfo:
    """Tag values; ``None`` wherever the file carries nothing usable."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    year: int | None = None
    track: int | None = None
    genre: str | None = None


def _first(tags, key: str) -> str | None:
    v = tags.get(key)
    if not v:
        return None
    if isinstance(v, list):
        return (str(v[0]).strip() if v else None) or None
    s = str(v).strip()
    return s or None


def _leading_int(raw: str | None) -> int | None:
    """``"3/12"`` -> 3, ``"2004-05-01"`` -> 2004."""
    if not raw:
        return None
    head = raw.split("/")[0].split("-")[0].strip()
    try:
        return int(head)
    except ValueError:
        return None


def read_tags(path: str | Path) -> TagInfo | None:
    """Return the tags of *path*, or ``None`` if mutagen cannot parse it.

    Errors are logged, never raised: a broken file must not abort a scan.
    """
    try:
        audio = MutagenFile(str(path), easy=True)
    except (MutagenError, OSError) as exc:
        log.warning("Cannot read tags from %s: %s", path, exc)
        return None
    if audio is None or not audio.tags:
        return None

    genres = audio.tags.get("genre") or []
    genre = ", ".join(str(g).strip() for g in genres if str(g).strip())

    return TagInfo(
        title=_first(audio.tags, "title"),
        artist=_first(audio.tags, "artist"),
        album=_first(audio.tags, "album"),
        year=_leading_int(_first(audio.tags, "date")),
        track=_leading_int(_first(audio.tags, "tracknumber")),
        genre=genre or None,
    )
