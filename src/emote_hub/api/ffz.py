"""FrankerFaceZ emote provider."""

from typing import Any

from ..core.models import Emote
from .base import BaseSourceClient, PayloadError, normalize_url, require_str

FFZ_URL = "https://api.frankerfacez.com/v1"

# Largest scale first
URL_SCALES = ("4", "2", "1")


def pick_ffz_url(urls: Any) -> str | None:
    """Pick the largest available image from an FFZ ``urls`` mapping, as https."""
    if not isinstance(urls, dict):
        return None
    for scale in URL_SCALES:
        url = urls.get(scale)
        if isinstance(url, str) and url:
            return normalize_url(url)
    return None


def parse_ffz_room(data: Any) -> list[Emote]:
    """Parse an FFZ ``/room/id/<id>`` body, flattening every emote set."""
    if not isinstance(data, dict) or not isinstance(data.get("sets"), dict):
        raise PayloadError("FFZ: expected object with 'sets'")

    emotes: list[Emote] = []
    for set_id, emote_set in data["sets"].items():
        emoticons = emote_set.get("emoticons") if isinstance(emote_set, dict) else None
        if not isinstance(emoticons, list):
            raise PayloadError(f"FFZ set {set_id}: missing 'emoticons'")
        for entry in emoticons:
            name = require_str(entry, "name", "FFZ emote")
            link = pick_ffz_url(entry.get("urls"))
            if link is None:
                raise PayloadError(f"FFZ emote {name!r}: no image URL")
            emotes.append(Emote(name=name, link=link))
    return emotes


class FFZSource(BaseSourceClient):
    """FrankerFaceZ room emotes."""

    name = "FFZ"

    def __init__(self, base_url: str = FFZ_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    async def fetch_channel(self, channel_id: str) -> list[Emote]:
        """Fetch the FFZ emotes of a Twitch room (by numeric id)."""
        return await self._fetch_emotes(
            f"{self.base_url}/room/id/{channel_id}",
            parse_ffz_room,
            f"channel {channel_id}",
        )
