"""Tests for cover art discovery."""

from __future__ import annotations

from flacbox.artwork import DEFAULT_COVER, cover_url, find_art


class TestFindArt:
    def test_cover_preferred_over_folder(self, tmp_path):
        (tmp_path / "folder.jpg").touch()
        (tmp_path / "cover.png").touch()
        assert find_art(tmp_path, "song.flac") == tmp_path / "cover.png"

    def test_stem_order_beats_extension_order(self, tmp_path):
        (tmp_path / "front.jpg").touch()
        (tmp_path / "art.webp").touch()
        assert find_art(tmp_path, "song.flac") == tmp_path / "art.webp"

    def test_extension_order_within_stem(self, tmp_path):
        (tmp_path / "cover.png").touch()
        (tmp_path / "cover.jpeg").touch()
        assert find_art(tmp_path, "song.flac") == tmp_path / "cover.jpeg"

    def test_case_insensitive_match(self, tmp_path):
        (tmp_path / "Cover.JPG").touch()
        assert find_art(tmp_path, "song.flac") == tmp_path / "Cover.JPG"

    def test_audio_stem_candidate(self, tmp_path):
        (tmp_path / "zzz.png").touch()
        (tmp_path / "song.png").touch()
        assert find_art(tmp_path, "song.flac") == tmp_path / "song.png"

    def test_directory_name_candidate(self, tmp_path):
        album = tmp_path / "Blue Train"
        album.mkdir()
        (album / "aaa.gif").touch()
        (album / "blue train.jpg").touch()
        assert find_art(album, "song.flac") == album / "blue train.jpg"

    def test_falls_back_to_any_image(self, tmp_path):
        (tmp_path / "notes.txt").touch()
        (tmp_path / "scan_b.png").touch()
        (tmp_path / "scan_a.PNG").touch()
        assert find_art(tmp_path, "song.flac") == tmp_path / "scan_a.PNG"

    def test_ignores_directories(self, tmp_path):
        (tmp_path / "cover.jpg").mkdir()
        assert find_art(tmp_path, "song.flac") is None

    def test_no_image_returns_none(self, tmp_path):
        (tmp_path / "song.flac").touch()
        assert find_art(tmp_path, "song.flac") is None

    def test_missing_directory_returns_none(self, tmp_path):
        assert find_art(tmp_path / "gone", "song.flac") is None


class TestCoverUrl:
    def test_none_is_default_cover(self, tmp_path):
        assert cover_url(None, tmp_path) == DEFAULT_COVER

    def test_relative_to_public_root(self, tmp_path):
        art = tmp_path / "music" / "Album" / "cover.jpg"
        assert cover_url(art, tmp_path) == "/music/Album/cover.jpg"
