#!/usr/bin/env python3
"""Main entry point for Emote Hub."""

import logging
import sys

from aiohttp import web

from .api.auth import CredentialManager
from .api.bttv import BTTVSource
from .api.extras import ChannelExtrasSource, GlobalSource
from .api.ffz import FFZSource
from .api.seventv import SevenTVSource
from .api.twitch import TwitchSource
from .core.aggregator import EmoteAggregator
from .core.cache import CacheStore
from .core.scheduler import RefreshScheduler
from .core.settings import Settings
from .server import create_app

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.client").setLevel(logging.WARNING)


def build_app(settings: Settings) -> web.Application:
    """Wire sources, aggregator, cache and scheduler into the web app."""
    client_opts = {
        "timeout": settings.refresh.request_timeout,
        "max_retries": settings.refresh.max_retries,
    }
    credentials = CredentialManager(settings.twitch, timeout=settings.refresh.request_timeout)
    seventv = SevenTVSource(**client_opts)

    aggregator = EmoteAggregator(
        twitch=TwitchSource(credentials, **client_opts),
        extras=ChannelExtrasSource(seventv, FFZSource(**client_opts)),
        globals_=GlobalSource(BTTVSource(**client_opts), seventv),
        main_channel_id=settings.channels.main_channel_id,
        other_channel_ids=settings.channels.other_channel_ids,
    )
    cache = CacheStore()
    scheduler = RefreshScheduler(aggregator, cache, interval=settings.refresh.interval)

    app = create_app(cache, scheduler=scheduler, static_dir=settings.server.static_dir)

    async def _close_credentials(app: web.Application) -> None:
        await credentials.close()

    app.on_cleanup.append(_close_credentials)
    return app


def main() -> int:
    """Main entry point."""
    setup_logging()

    settings = Settings.load()
    if not settings.channels.main_channel_id:
        logger.error("No main channel configured")
        logger.error("Set TWITCH_CHANNEL_ID or channels.main_channel_id in settings.json")
        return 1
    if not settings.twitch.configured:
        logger.warning("Twitch client credentials missing, Twitch emotes will be skipped")

    app = build_app(settings)
    logger.info(f"Server running at http://localhost:{settings.server.port}")
    web.run_app(app, host=settings.server.host, port=settings.server.port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
