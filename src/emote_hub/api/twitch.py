"""Twitch Helix channel emotes."""

import asyncio
import logging
from typing import Any

import aiohttp

from ..core.models import Credential, Emote
from .auth import AuthFailure, CredentialManager
from .base import BaseSourceClient, PayloadError, UpstreamError, require_str

logger = logging.getLogger(__name__)

HELIX_URL = "https://api.twitch.tv/helix"

# Highest resolution first
IMAGE_KEYS = ("url_4x", "url_2x", "url_1x")


def parse_helix_emotes(data: Any) -> list[Emote]:
    """Map a ``/chat/emotes`` body to emotes, using the largest image available.

    Raises:
        PayloadError: the body or any entry does not match the Helix shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("data"), list):
        raise PayloadError("Helix: expected object with a 'data' list")

    emotes: list[Emote] = []
    for entry in data["data"]:
        name = require_str(entry, "name", "Helix emote")
        images = entry.get("images")
        if not isinstance(images, dict):
            raise PayloadError(f"Helix emote {name!r}: missing 'images'")
        link = next(
            (images[key] for key in IMAGE_KEYS if isinstance(images.get(key), str) and images[key]),
            None,
        )
        if link is None:
            raise PayloadError(f"Helix emote {name!r}: no image URL")
        emotes.append(Emote(name=name, link=link))
    return emotes


class TwitchSource(BaseSourceClient):
    """Channel (subscriber, follower, bits) emotes from the Helix API."""

    name = "Twitch"

    def __init__(
        self,
        credentials: CredentialManager,
        base_url: str = HELIX_URL,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")

    def _get_headers(self, credential: Credential) -> dict[str, str]:
        return {
            "Client-ID": self.credentials.client_id,
            "Authorization": f"Bearer {credential.token}",
        }

    async def fetch_channel(self, channel_id: str) -> list[Emote]:
        """Fetch a broadcaster's emotes. Never raises; failures yield []."""
        try:
            data = await self._request_with_auth(channel_id)
            emotes = parse_helix_emotes(data)
        except AuthFailure as e:
            logger.error(f"Twitch emotes for channel {channel_id} skipped, auth failed: {e}")
            return []
        except UpstreamError as e:
            logger.warning(f"Twitch emotes for channel {channel_id} failed: {e}")
            return []
        except PayloadError as e:
            logger.warning(f"Twitch emotes for channel {channel_id} malformed: {e}")
            return []
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Twitch emotes for channel {channel_id} error: {e!r}")
            return []

        logger.debug(f"Twitch: {len(emotes)} emotes for channel {channel_id}")
        return emotes

    async def _request_with_auth(self, channel_id: str) -> Any:
        """GET channel emotes, renewing the token once if it is rejected."""
        url = f"{self.base_url}/chat/emotes"
        params = {"broadcaster_id": channel_id}

        credential = await self.credentials.get_token()
        try:
            return await self._get_json(url, params=params, headers=self._get_headers(credential))
        except UpstreamError as e:
            if e.status != 401:
                raise
            self.credentials.invalidate(credential)

        credential = await self.credentials.get_token()
        return await self._get_json(url, params=params, headers=self._get_headers(credential))
