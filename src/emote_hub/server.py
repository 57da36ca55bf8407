"""HTTP boundary: exposes the cached snapshot over aiohttp.web."""

import logging
from pathlib import Path

from aiohttp import web

from .core.cache import CacheStore
from .core.scheduler import RefreshScheduler

logger = logging.getLogger(__name__)

CACHE_KEY = web.AppKey("cache", CacheStore)
SCHEDULER_KEY = web.AppKey("scheduler", RefreshScheduler)
STATIC_DIR_KEY = web.AppKey("static_dir", Path)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Allow any origin to read the API (overlays run on other hosts)."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


async def get_emotes(request: web.Request) -> web.Response:
    snapshot = request.app[CACHE_KEY].read()
    return web.json_response(snapshot.to_list() if snapshot else [])


async def get_health(request: web.Request) -> web.Response:
    snapshot = request.app[CACHE_KEY].read()
    return web.json_response(
        {
            "status": "OK",
            "emoteCount": snapshot.emote_count if snapshot else 0,
            "lastUpdated": snapshot.last_updated if snapshot else None,
        }
    )


async def get_static(request: web.Request) -> web.FileResponse:
    """Serve a file from the static directory, ``index.html`` for directories."""
    root = request.app[STATIC_DIR_KEY]
    path = (root / request.match_info.get("filename", "")).resolve()
    if path != root and root not in path.parents:
        raise web.HTTPNotFound()
    if path.is_dir():
        path = path / "index.html"
    if not path.is_file():
        raise web.HTTPNotFound()
    return web.FileResponse(path)


async def _scheduler_ctx(app: web.Application):
    scheduler = app[SCHEDULER_KEY]
    await scheduler.start()
    yield
    await scheduler.stop()


def create_app(
    cache: CacheStore,
    scheduler: RefreshScheduler | None = None,
    static_dir: str | Path | None = None,
) -> web.Application:
    """Build the web application.

    Args:
        cache: Store the handlers read from.
        scheduler: Started with the app and stopped on cleanup, if given.
        static_dir: Directory served at ``/`` if it exists.
    """
    app = web.Application(middlewares=[cors_middleware])
    app[CACHE_KEY] = cache

    # API routes first so static files can never shadow them
    app.router.add_get("/api/emotes", get_emotes)
    app.router.add_get("/health", get_health)

    if static_dir is not None:
        static_path = Path(static_dir)
        if static_path.is_dir():
            app[STATIC_DIR_KEY] = static_path.resolve()
            app.router.add_get("/", get_static)
            app.router.add_get("/{filename:.+}", get_static)
            logger.info(f"Serving static files from {app[STATIC_DIR_KEY]}")
        else:
            logger.debug(f"Static directory {static_path} not found, not serving files")

    if scheduler is not None:
        app[SCHEDULER_KEY] = scheduler
        app.cleanup_ctx.append(_scheduler_ctx)

    return app
