"""Tests for tag reading; mutagen itself is patched out."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from mutagen import MutagenError

from flacbox.tags import TagInfo, read_tags


def _fake_audio(tags):
    audio = MagicMock()
    audio.tags = tags
    return audio


class TestReadTags:
    def test_reads_all_fields(self):
        tags = {
            "title": ["Blue Train"],
            "artist": ["John Coltrane"],
            "album": ["Blue Train"],
            "date": ["1957-09-15"],
            "tracknumber": ["1/5"],
            "genre": ["Jazz", "Hard Bop"],
        }
        with patch("flacbox.tags.MutagenFile", return_value=_fake_audio(tags)) as mf:
            info = read_tags("/music/a.flac")
        mf.assert_called_once_with("/music/a.flac", easy=True)
        assert info == TagInfo(
            title="Blue Train",
            artist="John Coltrane",
            album="Blue Train",
            year=1957,
            track=1,
            genre="Jazz, Hard Bop",
        )

    def test_blank_values_are_none(self):
        tags = {"title": ["  "], "artist": [], "album": ["X"]}
        with patch("flacbox.tags.MutagenFile", return_value=_fake_audio(tags)):
            info = read_tags("a.flac")
        assert info.title is None
        assert info.artist is None
        assert info.album == "X"
        assert info.genre is None

    def test_unparseable_track_number(self):
        tags = {"tracknumber": ["A1"]}
        with patch("flacbox.tags.MutagenFile", return_value=_fake_audio(tags)):
            assert read_tags("a.flac").track is None

    def test_unknown_format_returns_none(self):
        with patch("flacbox.tags.MutagenFile", return_value=None):
            assert read_tags("a.flac") is None

    def test_no_tags_returns_none(self):
        with patch("flacbox.tags.MutagenFile", return_value=_fake_audio(None)):
            assert read_tags("a.flac") is None

    def test_mutagen_error_returns_none(self):
        with patch("flacbox.tags.MutagenFile", side_effect=MutagenError("broken")):
            assert read_tags("a.flac") is None

    def test_empty_file_has_no_tags(self, tmp_path):
        p = tmp_path / "empty.flac"
        p.touch()
        assert read_tags(p) is None
