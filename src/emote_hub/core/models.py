"""Core data models for Emote Hub."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum


class PriorityTier(IntEnum):
    """Merge precedence, lowest to highest.

    Only used while merging; a later tier overwrites an earlier one.
    """

    GLOBAL = 0
    OTHER_CHANNEL_EXTRAS = 1
    OTHER_CHANNEL_TWITCH = 2
    MAIN_CHANNEL_EXTRAS = 3
    MAIN_CHANNEL_TWITCH = 4


@dataclass(frozen=True)
class Emote:
    """A named chat image contributed by a provider."""

    name: str
    link: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "link": self.link}


@dataclass(frozen=True)
class Credential:
    """Bearer token for the Twitch Helix API."""

    token: str

    def __repr__(self) -> str:
        # Keep tokens out of logs
        return "Credential(token=***)"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Snapshot:
    """One fully-merged, deduplicated emote set."""

    emotes: tuple[Emote, ...] = ()
    generated_at: datetime = field(default_factory=_utc_now)

    @property
    def emote_count(self) -> int:
        return len(self.emotes)

    @property
    def last_updated(self) -> str:
        """Generation time as ISO-8601 UTC, e.g. ``2025-01-01T12:00:00.000Z``."""
        ts = self.generated_at.astimezone(timezone.utc)
        return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_list(self) -> list[dict[str, str]]:
        return [emote.to_dict() for emote in self.emotes]
