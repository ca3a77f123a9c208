"""HTTP API: serves the scanned playlist and the static player files.

Routes
------
- GET /api/scan : JSON array of tracks (rescanned on every request).
- GET /         : ``index.html`` from the static root.
- GET /<path>   : any other file below the static root (player assets,
                  audio files and cover art).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from aiohttp import web

from flacbox.library import LibraryScanError, MusicLibrary

log = logging.getLogger(__name__)

LIBRARY_KEY = web.AppKey("library", MusicLibrary)
STATIC_DIR_KEY = web.AppKey("static_dir", Path)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response()
    else:
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            exc.headers.update(CORS_HEADERS)
            raise
    response.headers.update(CORS_HEADERS)
    return response


async def handle_scan(request: web.Request) -> web.Response:
    library = request.app[LIBRARY_KEY]
    loop = asyncio.get_running_loop()
    try:
        tracks = await loop.run_in_executor(None, library.scan)
    except (LibraryScanError, OSError) as exc:
        log.error("Error scanning directory: %s", exc)
        return web.json_response({"error": "Failed to scan directory"}, status=500)
    log.info("Found %d tracks", len(tracks))
    return web.json_response([track.to_dict() for track in tracks])


async def handle_index(request: web.Request) -> web.StreamResponse:
    index = request.app[STATIC_DIR_KEY] / "index.html"
    if not index.is_file():
        raise web.HTTPNotFound()
    return web.FileResponse(index)


def create_app(library: MusicLibrary, static_dir: str | Path) -> web.Application:
    """Build the application; static files are served only if the dir exists."""
    static_dir = Path(static_dir)
    app = web.Application(middlewares=[cors_middleware])
    app[LIBRARY_KEY] = library
    app[STATIC_DIR_KEY] = static_dir
    app.router.add_get("/api/scan", handle_scan)
    app.router.add_get("/", handle_index)
    if static_dir.is_dir():
        app.router.add_static("/", static_dir)
    else:
        log.warning("Static directory not found: %s", static_dir)
    return app


def run_server(
    library: MusicLibrary, static_dir: str | Path, host: str, port: int
) -> None:
    app = create_app(library, static_dir)
    log.info("Server running on %s:%d", host, port)
    web.run_app(app, host=host, port=port, print=None)
