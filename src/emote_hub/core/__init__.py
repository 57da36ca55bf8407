"""Core models and services for Emote Hub."""

from .aggregator import EmoteAggregator, merge_results
from .cache import CacheStore
from .models import Credential, Emote, PriorityTier, Snapshot
from .scheduler import RefreshScheduler
from .settings import Settings

__all__ = [
    "Credential",
    "Emote",
    "PriorityTier",
    "Snapshot",
    "Settings",
    "CacheStore",
    "EmoteAggregator",
    "RefreshScheduler",
    "merge_results",
]
