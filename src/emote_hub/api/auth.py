"""Twitch app access token (client-credentials flow)."""

import asyncio
import logging

import aiohttp

from ..core.models import Credential
from ..core.settings import TwitchSettings

logger = logging.getLogger(__name__)

AUTH_URL = "https://id.twitch.tv/oauth2"


class AuthFailure(Exception):
    """The client-credentials exchange did not produce a token."""


class CredentialManager:
    """
    Owns the process-wide Twitch app token.

    The token is fetched lazily on first use and renewed only when a caller
    reports it as rejected via invalidate(). Concurrent callers share a
    single exchange.
    """

    def __init__(
        self,
        settings: TwitchSettings,
        auth_url: str = AUTH_URL,
        timeout: float = 15,
    ) -> None:
        self.settings = settings
        self.auth_url = auth_url.rstrip("/")
        self.timeout = timeout
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()
        self._attempts = 0
        self._last_failure: AuthFailure | None = None
        self._session: aiohttp.ClientSession | None = None
        self.exchanges = 0

    @property
    def client_id(self) -> str:
        return self.settings.client_id

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_token(self) -> Credential:
        """Return the current credential, exchanging for a new one if needed.

        Raises:
            AuthFailure: credentials missing or the exchange failed.
        """
        credential = self._credential
        if credential is not None:
            return credential

        attempt = self._attempts
        async with self._lock:
            # Another caller may have refreshed while we waited
            if self._credential is not None:
                return self._credential
            # Callers queued behind a failed exchange share its outcome
            if self._attempts != attempt and self._last_failure is not None:
                raise AuthFailure(str(self._last_failure)) from self._last_failure

            self._attempts += 1
            try:
                self._credential = await self._exchange()
            except AuthFailure as e:
                self._last_failure = e
                raise
            self._last_failure = None
            return self._credential

    def invalidate(self, credential: Credential) -> None:
        """Drop a credential that the API rejected.

        Only the rejected credential is dropped, so a token refreshed by a
        concurrent caller survives.
        """
        if self._credential == credential:
            logger.info("Twitch token rejected, will re-authenticate on next request")
            self._credential = None

    async def _exchange(self) -> Credential:
        if not self.settings.configured:
            raise AuthFailure("Twitch client_id/client_secret not configured")

        self.exchanges += 1
        params = {
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "grant_type": "client_credentials",
        }
        try:
            async with self.session.post(f"{self.auth_url}/token", params=params) as resp:
                if resp.status != 200:
                    raise AuthFailure(f"Token endpoint returned {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise AuthFailure(f"Token request failed: {e!r}") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthFailure("Token response missing access_token")

        logger.info("Obtained Twitch app access token")
        return Credential(token=token)
