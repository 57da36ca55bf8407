"""Clients for the upstream emote providers."""

from .auth import AuthFailure, CredentialManager
from .base import BaseSourceClient, PayloadError, UpstreamError
from .bttv import BTTVSource
from .extras import ChannelExtrasSource, GlobalSource
from .ffz import FFZSource
from .seventv import SevenTVSource
from .twitch import TwitchSource

__all__ = [
    "AuthFailure",
    "CredentialManager",
    "BaseSourceClient",
    "PayloadError",
    "UpstreamError",
    "TwitchSource",
    "SevenTVSource",
    "FFZSource",
    "BTTVSource",
    "ChannelExtrasSource",
    "GlobalSource",
]
