"""Derive artist and title from an audio file name.

Rules are tried in order and the first one that matches wins::

    "03 - Artist - Title"         -> TrackNumberRule (prefix stripped, then split)
    "Artist - Title"              -> DelimiterRule
    "Some Track"                  -> DefaultRule

Whatever rule matched, the title is cleaned afterwards: a trailing audio
extension is dropped and any ``(...)`` / ``[...]`` segments are removed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, Sequence

UNKNOWN_ARTIST = "Unknown Artist"
DELIMITER = " - "

_TRACK_NUMBER_RE = re.compile(r"^\d+[\s.-]+")
_AUDIO_SUFFIX_RE = re.compile(r"\.(mp3|wav|ogg|flac)$", re.IGNORECASE)
_BRACKETED_RE = re.compile(r"[\[(].*?[\])]")


@dataclass(frozen=True)
class NameGuess:
    artist: str
    title: str


class FilenameRule(Protocol):
    def match(self, stem: str) -> NameGuess | None: ...


def _split_on_delimiter(text: str) -> NameGuess | None:
    if DELIMITER not in text:
        return None
    artist, title = text.split(DELIMITER, 1)
    return NameGuess(artist=artist.strip(), title=title.strip())


class TrackNumberRule:
    """Leading track number followed by ``Artist - Title``.

    Matches ``01 Artist - Title``, ``01. Artist - Title`` and
    ``01 - Artist - Title``.  Without a delimiter after the prefix the
    rule does not apply.
    """

    def match(self, stem: str) -> NameGuess | None:
        prefix = _TRACK_NUMBER_RE.match(stem)
        if prefix is None:
            return None
        return _split_on_delimiter(stem[prefix.end():])


class DelimiterRule:
    """``Artist - Title``; only the first delimiter separates the artist."""

    def match(self, stem: str) -> NameGuess | None:
        return _split_on_delimiter(stem)


class DefaultRule:
    def match(self, stem: str) -> NameGuess | None:
        return NameGuess(artist=UNKNOWN_ARTIST, title=stem)


DEFAULT_RULES: tuple[FilenameRule, ...] = (
    TrackNumberRule(),
    DelimiterRule(),
    DefaultRule(),
)


def clean_title(title: str) -> str:
    """Strip a trailing audio extension and bracketed segments."""
    title = _AUDIO_SUFFIX_RE.sub("", title)
    title = _BRACKETED_RE.sub("", title)
    return title.strip()


def guess_from_stem(
    stem: str, rules: Sequence[FilenameRule] = DEFAULT_RULES
) -> NameGuess:
    """Apply *rules* to *stem* and return a cleaned artist/title pair.

    Falls back to the raw stem if no rule matches or cleaning empties
    the title, so the result always carries a title.
    """
    guess = None
    for rule in rules:
        guess = rule.match(stem)
        if guess is not None:
            break
    if guess is None:
        guess = NameGuess(artist=UNKNOWN_ARTIST, title=stem)

    artist = guess.artist or UNKNOWN_ARTIST
    title = clean_title(guess.title) or stem
    return NameGuess(artist=artist, title=title)
