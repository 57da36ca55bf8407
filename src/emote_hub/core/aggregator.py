"""Merge emotes from every source into one snapshot."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from typing import Protocol

from .models import Emote, PriorityTier, Snapshot

logger = logging.getLogger(__name__)


class ChannelSource(Protocol):
    async def fetch_channel(self, channel_id: str) -> list[Emote]: ...

    async def close(self) -> None: ...


class GlobalEmoteSource(Protocol):
    async def fetch_global(self) -> list[Emote]: ...

    async def close(self) -> None: ...


def merge_results(results: Iterable[tuple[PriorityTier, list[Emote]]]) -> list[Emote]:
    """Deduplicate emotes by name, letting the higher tier win.

    Results are applied lowest tier first, each overwriting earlier entries
    of the same name, so the outcome does not depend on the order results
    arrive in. Emotes keep the position where their name was first seen.
    """
    merged: dict[str, Emote] = {}
    for _tier, emotes in sorted(results, key=lambda result: result[0]):
        for emote in emotes:
            merged[emote.name] = emote
    return list(merged.values())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EmoteAggregator:
    """Runs one fetch-all-sources-then-merge pass."""

    def __init__(
        self,
        twitch: ChannelSource,
        extras: ChannelSource,
        globals_: GlobalEmoteSource,
        main_channel_id: str,
        other_channel_ids: Iterable[str] = (),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.twitch = twitch
        self.extras = extras
        self.globals = globals_
        self.main_channel_id = main_channel_id
        self.other_channel_ids = list(other_channel_ids)
        self.clock = clock

    def _requests(self) -> list[tuple[PriorityTier, Awaitable[list[Emote]]]]:
        requests: list[tuple[PriorityTier, Awaitable[list[Emote]]]] = [
            (PriorityTier.MAIN_CHANNEL_TWITCH, self.twitch.fetch_channel(self.main_channel_id)),
        ]
        for channel_id in self.other_channel_ids:
            requests.append(
                (PriorityTier.OTHER_CHANNEL_TWITCH, self.twitch.fetch_channel(channel_id))
            )
        requests.append(
            (PriorityTier.MAIN_CHANNEL_EXTRAS, self.extras.fetch_channel(self.main_channel_id))
        )
        for channel_id in self.other_channel_ids:
            requests.append(
                (PriorityTier.OTHER_CHANNEL_EXTRAS, self.extras.fetch_channel(channel_id))
            )
        requests.append((PriorityTier.GLOBAL, self.globals.fetch_global()))
        return requests

    async def build_snapshot(self) -> Snapshot:
        """Fetch every source concurrently and merge into a new Snapshot."""
        requests = self._requests()
        batches = await asyncio.gather(
            *(coro for _tier, coro in requests), return_exceptions=True
        )

        results = []
        for (tier, _coro), batch in zip(requests, batches):
            if isinstance(batch, BaseException):
                logger.error(f"{tier.name} fetch failed, dropping its emotes: {batch!r}")
                continue
            results.append((tier, batch))

        emotes = merge_results(results)
        fetched = sum(len(batch) for _tier, batch in results)
        logger.info(f"Merged {fetched} fetched emotes into {len(emotes)} unique")
        return Snapshot(emotes=tuple(emotes), generated_at=self.clock())

    async def close(self) -> None:
        """Close the HTTP sessions of every source."""
        for source in (self.twitch, self.extras, self.globals):
            await source.close()
