"""Tests for the sounddevice/soundfile audio element."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

# Imported before the sys.modules patch so it survives the patch's cleanup.
from flacbox.element import (
    ENDED,
    ERROR,
    LOADEDMETADATA,
    PAUSE,
    PLAY,
    TIMEUPDATE,
    VOLUMECHANGE,
    PlaybackError,
)

# Patch sounddevice and soundfile before importing SoundDeviceAudio so the
# tests work without the native libraries installed.
sd_mock = MagicMock()
sf_mock = MagicMock()
with patch.dict("sys.modules", {"sounddevice": sd_mock, "soundfile": sf_mock}):
    from flacbox.audio import SoundDeviceAudio


@pytest.fixture()
def player(tmp_path):
    """Create a SoundDeviceAudio with fully mocked backends."""
    sd_mock.reset_mock()
    sf_mock.reset_mock()
    sf_mock.info.side_effect = None
    sf_mock.info.return_value = MagicMock(samplerate=44100, frames=441000)
    return SoundDeviceAudio(tmp_path)


@pytest.fixture()
def events(player):
    """Record every event the player dispatches, in order."""
    seen: list[tuple[str, object]] = []
    for name in (LOADEDMETADATA, PLAY, PAUSE, ENDED, VOLUMECHANGE, ERROR):
        player.add_event_listener(name, lambda detail, name=name: seen.append((name, detail)))
    return seen


def _fake_sound_file():
    fake_sf = MagicMock()
    fake_sf.samplerate = 44100
    fake_sf.channels = 2
    # First read returns data, second returns empty (end of file)
    fake_sf.read.side_effect = [MagicMock(__len__=lambda s: 2048), MagicMock(__len__=lambda s: 0)]
    sf_mock.SoundFile.return_value.__enter__ = MagicMock(return_value=fake_sf)
    sf_mock.SoundFile.return_value.__exit__ = MagicMock(return_value=False)
    return fake_sf


def _wait_for_thread(player):
    if player._playback_thread is not None:
        player._playback_thread.join(timeout=2.0)


class TestSource:
    def test_resolves_against_base_dir(self, player, tmp_path):
        player.set_source("music/a.flac")
        assert player.source == tmp_path / "music" / "a.flac"

    def test_clear_source(self, player):
        player.set_source("music/a.flac")
        player.set_source(None)
        assert player.source is None


class TestLoad:
    def test_reports_duration(self, player, events, tmp_path):
        player.set_source("a.flac")
        player.load()
        player.check_events()
        sf_mock.info.assert_called_with(str(tmp_path / "a.flac"))
        assert player.duration == 10.0
        assert events == [(LOADEDMETADATA, None)]

    def test_error_event_on_unreadable_file(self, player, events):
        sf_mock.info.side_effect = RuntimeError("not a flac file")
        player.set_source("a.flac")
        player.load()
        player.check_events()
        assert len(events) == 1
        name, detail = events[0]
        assert name == ERROR
        assert isinstance(detail, PlaybackError)

    def test_without_source_is_silent(self, player, events):
        player.load()
        player.check_events()
        assert events == []


class TestPlay:
    def test_streams_file_and_ends(self, player, events, tmp_path):
        _fake_sound_file()
        fake_stream = MagicMock()
        sd_mock.OutputStream.return_value = fake_stream

        player.set_source("a.flac")
        future = player.play()
        _wait_for_thread(player)
        player.check_events()

        sf_mock.SoundFile.assert_called_with(str(tmp_path / "a.flac"))
        fake_stream.start.assert_called_once()
        fake_stream.write.assert_called_once()
        fake_stream.close.assert_called_once()
        assert future.done() and future.exception() is None
        assert [name for name, _ in events] == [PLAY, ENDED]

    def test_without_source_fails_future(self, player):
        future = player.play()
        assert not future.done()
        player.check_events()
        assert isinstance(future.exception(), PlaybackError)

    def test_open_failure_fails_future(self, player, events):
        sf_mock.SoundFile.side_effect = RuntimeError("device busy")
        try:
            player.set_source("a.flac")
            future = player.play()
            _wait_for_thread(player)
            player.check_events()
        finally:
            sf_mock.SoundFile.side_effect = None
        assert isinstance(future.exception(), PlaybackError)
        assert events == []

    def test_new_source_drops_pending_events_of_old_source(self, player, events):
        _fake_sound_file()
        sd_mock.OutputStream.return_value = MagicMock()

        player.set_source("a.flac")
        future = player.play()
        _wait_for_thread(player)
        player.set_source("b.flac")
        player.check_events()

        assert future.done() and future.exception() is None
        assert events == []

    def test_new_source_stops_previous_playback(self, player):
        player.set_source("a.flac")
        player.play()
        player.set_source("b.flac")
        # Should not raise; the previous thread is joined
        assert player._stop_event.is_set()


class TestPause:
    def test_pause_clears_event(self, player):
        player.pause()
        assert not player._paused.is_set()

    def test_pause_when_idle_emits_nothing(self, player, events):
        player.pause()
        player.check_events()
        assert events == []

    def test_stop_unblocks_paused_thread(self, player):
        player.pause()
        player.set_source(None)
        # _paused must be set so the thread can wake up and exit
        assert player._paused.is_set()


class TestVolume:
    def test_volume_change_event(self, player, events):
        player.volume = 0.5
        player.check_events()
        assert player.volume == 0.5
        assert events == [(VOLUMECHANGE, None)]

    def test_mute_change_event(self, player, events):
        player.muted = True
        player.check_events()
        assert player.muted is True
        assert events == [(VOLUMECHANGE, None)]


class TestSeek:
    def test_seek_before_play_sets_position(self, player):
        player.set_source("a.flac")
        player.load()
        player.seek(2.0)
        assert player.current_time == 2.0

    def test_seek_while_paused_reports_new_position(self, player):
        timeupdates = []
        player.add_event_listener(TIMEUPDATE, lambda detail: timeupdates.append(player.current_time))
        player.set_source("a.flac")
        player.load()
        # Stand-in for a stream thread parked on the pause event.
        player._playback_thread = MagicMock(is_alive=MagicMock(return_value=True))
        try:
            player.seek(5.0)
            player.check_events()
            assert player.current_time == 5.0
            assert player._seek_to == 5 * 44100
            assert timeupdates == [5.0]
        finally:
            player._playback_thread = None


class TestEventPump:
    def test_events_wait_for_check_events(self, player, events):
        player.volume = 0.3
        assert events == []
        player.check_events()
        assert events == [(VOLUMECHANGE, None)]

    def test_removed_listener_not_called(self, player):
        handler = MagicMock()
        player.add_event_listener(VOLUMECHANGE, handler)
        player.remove_event_listener(VOLUMECHANGE, handler)
        player.volume = 0.1
        player.check_events()
        handler.assert_not_called()

    def test_unknown_event_rejected(self, player):
        with pytest.raises(ValueError):
            player.add_event_listener("canplay", MagicMock())

    def test_remove_unknown_handler_is_noop(self, player):
        player.remove_event_listener(PLAY, MagicMock())
