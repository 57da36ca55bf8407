"""BetterTTV emote provider."""

from typing import Any

from ..core.models import Emote
from .base import BaseSourceClient, PayloadError, require_str

BTTV_URL = "https://api.betterttv.net/3"
BTTV_CDN_URL = "https://cdn.betterttv.net/emote"


def bttv_link(emote_id: str) -> str:
    """CDN link for the 3x image of a BTTV emote."""
    return f"{BTTV_CDN_URL}/{emote_id}/3x"


def parse_bttv_emotes(data: Any) -> list[Emote]:
    """Parse a BTTV emote list of ``{code, id}`` entries."""
    if not isinstance(data, list):
        raise PayloadError("BTTV: expected a list of emotes")

    return [
        Emote(
            name=require_str(entry, "code", "BTTV emote"),
            link=bttv_link(require_str(entry, "id", "BTTV emote")),
        )
        for entry in data
    ]


class BTTVSource(BaseSourceClient):
    """BetterTTV global emotes."""

    name = "BTTV"

    def __init__(self, base_url: str = BTTV_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    async def fetch_global(self) -> list[Emote]:
        """Fetch BTTV global emotes."""
        return await self._fetch_emotes(
            f"{self.base_url}/cached/emotes/global",
            parse_bttv_emotes,
            "global",
        )
