"""7TV emote provider (v2 API)."""

from typing import Any

from ..core.models import Emote
from .base import BaseSourceClient, PayloadError, normalize_url, require_str

SEVENTV_URL = "https://api.7tv.app/v2"

CHANNEL_LIMIT = 200
GLOBAL_LIMIT = 500


def parse_seventv_emotes(data: Any) -> list[Emote]:
    """Parse a 7TV v2 emote list.

    Each entry carries ``urls`` as ``[[size, url], ...]``; the first pair is used.
    """
    if not isinstance(data, list):
        raise PayloadError("7TV: expected a list of emotes")

    emotes: list[Emote] = []
    for entry in data:
        name = require_str(entry, "name", "7TV emote")
        urls = entry.get("urls")
        if (
            not isinstance(urls, list)
            or not urls
            or not isinstance(urls[0], list)
            or len(urls[0]) < 2
            or not isinstance(urls[0][1], str)
            or not urls[0][1]
        ):
            raise PayloadError(f"7TV emote {name!r}: missing urls")
        emotes.append(Emote(name=name, link=normalize_url(urls[0][1])))
    return emotes


class SevenTVSource(BaseSourceClient):
    """7TV channel and global emotes."""

    name = "7TV"

    def __init__(self, base_url: str = SEVENTV_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    async def fetch_channel(self, channel_id: str) -> list[Emote]:
        """Fetch a Twitch channel's 7TV emotes."""
        return await self._fetch_emotes(
            f"{self.base_url}/users/twitch/{channel_id}/emotes",
            parse_seventv_emotes,
            f"channel {channel_id}",
            params={"limit": str(CHANNEL_LIMIT)},
        )

    async def fetch_global(self) -> list[Emote]:
        """Fetch 7TV global emotes."""
        return await self._fetch_emotes(
            f"{self.base_url}/emotes/global",
            parse_seventv_emotes,
            "global",
            params={"limit": str(GLOBAL_LIMIT)},
        )
