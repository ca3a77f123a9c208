"""Command line entry point: web server, one-off scan, or terminal player."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from flacbox.config import DEFAULT_CONFIG_PATH, load_config
from flacbox.library import LibraryScanError, MusicLibrary
from flacbox.sequencer import Callbacks, Sequencer, format_time

log = logging.getLogger(__name__)


def _print_status(player: Sequencer) -> None:
    track = player.current_track
    pb = player.playback
    print(
        f"  [{player.state.name}]"
        f"  {track.artist + ' – ' + track.title if track else '–'}"
        f"  {format_time(pb.current_time)}/{format_time(pb.duration)}"
        f"  vol: {pb.volume:.2f}{' (muted)' if pb.is_muted else ''}"
    )


def _print_playlist(player: Sequencer) -> None:
    for i, track in enumerate(player.playlist):
        marker = ">" if i == player.current_index else " "
        print(f" {marker}{i:3d}  {track.artist} – {track.title}  [{track.album}]")


def _run_scan_mode(library: MusicLibrary) -> int:
    """Print the scanned playlist as JSON."""
    try:
        tracks = library.scan()
    except LibraryScanError as exc:
        log.error("Error scanning directory: %s", exc)
        return 1
    json.dump([t.to_dict() for t in tracks], sys.stdout, indent=2, ensure_ascii=False)
    print()
    return 0


def _run_player_mode(library: MusicLibrary, volume: float, autoplay: bool) -> int:
    """Interactive terminal player on top of the sequencer."""
    from flacbox.audio import SoundDeviceAudio

    try:
        tracks = library.scan()
    except LibraryScanError as exc:
        log.error("Error scanning directory: %s", exc)
        return 1
    if not tracks:
        print(f"No audio files found in {library.basepath}")
        return 1

    audio = SoundDeviceAudio(library.public_root)
    player = Sequencer(
        audio,
        tracks,
        autoplay=autoplay,
        volume=volume,
        callbacks=Callbacks(
            on_track_change=lambda track, _p: print(f"  ♪ {track.artist} – {track.title}"),
            on_playback_failed=lambda exc, _p: print(f"  Playback failed: {exc}"),
            on_error=lambda exc, _p: print(f"  Error: {exc}"),
        ),
    )

    print("flacbox – interactive mode")
    print(
        "Available commands: list, play [n], pause, next, prev, "
        "vol <0-1>, mute, seek <sec>, remove <n>, status, quit"
    )
    print()

    try:
        while True:
            try:
                raw = input("flacbox> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break

            audio.check_events()

            if not raw:
                continue

            parts = raw.split(maxsplit=1)
            cmd = parts[0].lower()
            arg = parts[1] if len(parts) > 1 else None

            try:
                if cmd == "quit":
                    break
                elif cmd == "list":
                    _print_playlist(player)
                elif cmd == "play":
                    if arg is not None:
                        player.load_track(int(arg))
                    player.play()
                elif cmd == "pause":
                    player.pause()
                elif cmd == "next":
                    player.next()
                elif cmd == "prev":
                    player.prev()
                elif cmd == "vol" and arg is not None:
                    player.set_volume(float(arg))
                elif cmd == "mute":
                    player.toggle_mute()
                elif cmd == "seek" and arg is not None:
                    player.seek(float(arg))
                elif cmd == "remove" and arg is not None:
                    if not player.remove_track(int(arg)):
                        print(f"  No track at index {arg}")
                elif cmd == "status":
                    audio.check_events()
                    _print_status(player)
                else:
                    print(f"  Unknown command: {cmd}")
            except ValueError as exc:
                print(f"  Error: {exc}")
            audio.check_events()
    finally:
        player.destroy()
        audio.check_events()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="flacbox – serve a folder of audio files to a browser player",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Path to TOML config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--music-dir",
        default=None,
        help="Directory to scan for audio files",
    )
    parser.add_argument(
        "--static-dir",
        default=None,
        help="Public root served over HTTP; track URLs are relative to it",
    )
    parser.add_argument("--host", default=None, help="Address to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--scan",
        action="store_true",
        help="Scan the music directory, print the playlist as JSON and exit",
    )
    mode.add_argument(
        "--play",
        action="store_true",
        help="Play the music directory in an interactive terminal player",
    )
    args = parser.parse_args(argv)

    # Load config file (silently skip if not found)
    cfg = load_config(args.config)

    # CLI flags override config values (only when explicitly provided)
    music_dir = args.music_dir if args.music_dir is not None else cfg.music_dir
    static_dir = args.static_dir if args.static_dir is not None else cfg.static_dir
    host = args.host if args.host is not None else cfg.host
    port = args.port if args.port is not None else cfg.port
    log_level = args.log_level if args.log_level is not None else cfg.log_level

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="[%(levelname)s] %(message)s",
    )

    library = MusicLibrary(
        music_dir,
        static_dir,
        extensions=cfg.extensions,
        max_workers=cfg.scan_workers,
    )

    if args.scan:
        sys.exit(_run_scan_mode(library))
    if args.play:
        sys.exit(_run_player_mode(library, cfg.volume, cfg.autoplay))

    from flacbox.server import run_server

    run_server(library, static_dir, host, port)


if __name__ == "__main__":
    main()
