"""Emote Hub - aggregated Twitch, 7TV, FFZ and BTTV emotes for chat overlays."""

__version__ = "1.0.0"
