"""Locate cover art that sits next to an audio file."""

from __future__ import annotations

import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".webp")
ARTWORK_NAMES: tuple[str, ...] = ("cover", "folder", "album", "art", "front")

# Served by the frontend when a directory carries no image at all.
DEFAULT_COVER = "/img/default-cover.svg"


def find_art(directory: str | Path, associated_filename: str) -> Path | None:
    """Return the best cover image in *directory*, or ``None``.

    Candidate stems are tried in priority order: the well-known artwork
    names, then the stem of *associated_filename*, then the directory's
    own name.  Each stem is tried with every image extension before moving
    on.  Without a named match the first image file in the directory wins.
    All comparisons are case-insensitive.
    """
    directory = Path(directory)
    try:
        files = sorted(e.name for e in directory.iterdir() if e.is_file())
    except OSError as exc:
        log.warning("Cannot list %s for artwork: %s", directory, exc)
        return None

    by_lower: dict[str, str] = {}
    for name in files:
        by_lower.setdefault(name.lower(), name)

    stems = [
        *ARTWORK_NAMES,
        os.path.splitext(associated_filename)[0],
        directory.name,
    ]
    for stem in stems:
        for ext in IMAGE_EXTENSIONS:
            match = by_lower.get(f"{stem}{ext}".lower())
            if match is not None:
                return directory / match

    for name in files:
        if os.path.splitext(name)[1].lower() in IMAGE_EXTENSIONS:
            return directory / name
    return None


def cover_url(art: Path | None, public_root: str | Path) -> str:
    """Turn an artwork path into a root-relative URL, or the default cover."""
    if art is None:
        return DEFAULT_COVER
    rel = os.path.relpath(art, public_root)
    return "/" + rel.replace(os.sep, "/")
