"""Load flacbox configuration from a TOML file."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("/etc/flacbox.toml")


@dataclass
class Config:
    """Flacbox configuration."""

    music_dir: str = "public/music"
    static_dir: str = "public"
    host: str = "0.0.0.0"
    port: int = 3000
    extensions: list[str] = field(default_factory=lambda: [".flac"])
    scan_workers: int | None = None
    log_level: str = "INFO"
    volume: float = 0.7
    autoplay: bool = False


def _normalise_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def load_config(path: Path | str) -> Config:
    """Load configuration from a TOML file.

    Returns a :class:`Config` with defaults for any missing keys.
    If the file does not exist, returns a default :class:`Config`.
    The ``PORT`` environment variable, when set, overrides the port.
    """
    path = Path(path)
    data: dict = {}
    if path.is_file():
        with open(path, "rb") as f:
            data = tomllib.load(f)

    player = data.get("player", {})
    defaults = Config()

    port = int(data.get("port", defaults.port))
    if os.environ.get("PORT"):
        port = int(os.environ["PORT"])

    extensions = data.get("extensions")
    return Config(
        music_dir=data.get("music-dir", defaults.music_dir),
        static_dir=data.get("static-dir", defaults.static_dir),
        host=data.get("host", defaults.host),
        port=port,
        extensions=(
            [_normalise_extension(e) for e in extensions]
            if extensions
            else defaults.extensions
        ),
        scan_workers=data.get("scan-workers", defaults.scan_workers),
        log_level=str(data.get("log-level", defaults.log_level)).upper(),
        volume=float(player.get("volume", defaults.volume)),
        autoplay=bool(player.get("autoplay", defaults.autoplay)),
    )
