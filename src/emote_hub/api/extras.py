"""Composite clients over the third-party emote providers.

Each sub-provider is isolated: one failing contributes nothing and leaves
the others untouched. Results keep a fixed order (7TV then FFZ for
channels, BTTV then 7TV for globals) so merges are reproducible.
"""

import asyncio

from ..core.models import Emote
from .bttv import BTTVSource
from .ffz import FFZSource
from .seventv import SevenTVSource


class ChannelExtrasSource:
    """7TV + FFZ emotes for one channel."""

    name = "extras"

    def __init__(self, seventv: SevenTVSource, ffz: FFZSource) -> None:
        self.seventv = seventv
        self.ffz = ffz

    async def fetch_channel(self, channel_id: str) -> list[Emote]:
        seventv, ffz = await asyncio.gather(
            self.seventv.fetch_channel(channel_id),
            self.ffz.fetch_channel(channel_id),
        )
        return [*seventv, *ffz]

    async def close(self) -> None:
        await self.seventv.close()
        await self.ffz.close()


class GlobalSource:
    """BTTV + 7TV global emotes."""

    name = "global"

    def __init__(self, bttv: BTTVSource, seventv: SevenTVSource) -> None:
        self.bttv = bttv
        self.seventv = seventv

    async def fetch_global(self) -> list[Emote]:
        bttv, seventv = await asyncio.gather(
            self.bttv.fetch_global(),
            self.seventv.fetch_global(),
        )
        return [*bttv, *seventv]

    async def close(self) -> None:
        await self.bttv.close()
        await self.seventv.close()
