"""Base emote source client."""

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import aiohttp

from ..core.models import Emote

logger = logging.getLogger(__name__)

# Retry configuration
DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 10.0  # seconds
DEFAULT_TIMEOUT = 15  # seconds


class UpstreamError(Exception):
    """A provider answered with a non-2xx status."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Failed to fetch {url} - {status}")
        self.url = url
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.status == 404


class PayloadError(Exception):
    """A provider body could not be parsed into emotes."""


async def safe_json(resp: aiohttp.ClientResponse) -> Any:
    """Parse JSON from a response, raising PayloadError on HTML pages or bad JSON."""
    try:
        return await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadError(f"Failed to parse JSON from {resp.url}: {e}") from e


def normalize_url(url: str) -> str:
    """Turn a protocol-relative URL (``//cdn...``) into https."""
    if url.startswith("//"):
        return "https:" + url
    return url


def require_str(data: Any, key: str, where: str) -> str:
    """Return ``data[key]`` if it is a non-empty string, else raise PayloadError."""
    if not isinstance(data, dict):
        raise PayloadError(f"{where}: expected object, got {type(data).__name__}")
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise PayloadError(f"{where}: missing or invalid '{key}'")
    return value


class BaseSourceClient:
    """Shared plumbing for emote providers: session, timeouts and retries."""

    name = "source"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
    ) -> None:
        self._session: aiohttp.ClientSession | None = None
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            connector = aiohttp.TCPConnector(limit=20)
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            try:
                await self._session.close()
            finally:
                self._session = None

    async def _get_json(self, url: str, **kwargs: Any) -> Any:
        """GET a URL and return its JSON body.

        Transport errors and 5xx/429 responses are retried with exponential
        backoff. Any other non-2xx status raises UpstreamError immediately.

        Raises:
            UpstreamError: final response was not 2xx.
            PayloadError: body was not JSON.
            aiohttp.ClientError, asyncio.TimeoutError: transport failure after retries.
        """
        attempt = 0
        while True:
            delay = min(self.base_delay * (2**attempt), self.max_delay)
            try:
                async with self.session.get(url, **kwargs) as resp:
                    if 200 <= resp.status < 300:
                        return await safe_json(resp)
                    if not self._is_retryable_status(resp.status) or attempt >= self.max_retries:
                        raise UpstreamError(str(resp.url), resp.status)
                    delay = self._parse_retry_after(resp.headers, delay)
                    logger.warning(
                        f"{self.name}: {url} returned {resp.status}, "
                        f"retrying in {delay:.1f}s ({attempt + 1}/{self.max_retries})"
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt >= self.max_retries:
                    raise
                logger.warning(
                    f"{self.name}: {url} failed: {e!r}. "
                    f"Retrying in {delay:.1f}s ({attempt + 1}/{self.max_retries})"
                )
            attempt += 1
            await asyncio.sleep(delay)

    def _is_retryable_status(self, status: int) -> bool:
        """Server errors (5xx) and rate limiting (429) are worth retrying."""
        return status >= 500 or status == 429

    def _parse_retry_after(self, headers, default: float) -> float:
        """Parse a Retry-After header (seconds or HTTP-date), capped at max_delay."""
        retry_after = headers.get("Retry-After")
        if not retry_after:
            return default

        try:
            return min(max(float(retry_after), 0.0), self.max_delay)
        except ValueError:
            pass

        try:
            retry_dt = parsedate_to_datetime(retry_after)
            delta = (retry_dt - datetime.now(timezone.utc)).total_seconds()
        except (TypeError, ValueError):
            return default
        return min(max(delta, 0.0), self.max_delay)

    async def _fetch_emotes(
        self,
        url: str,
        parse: Callable[[Any], list[Emote]],
        scope: str,
        **kwargs: Any,
    ) -> list[Emote]:
        """Fetch and parse one batch, isolating every ordinary upstream failure.

        A 404 means the channel has no emotes with this provider and is not
        an error. Anything else is logged and yields [].
        """
        try:
            emotes = parse(await self._get_json(url, **kwargs))
        except UpstreamError as e:
            if e.not_found:
                logger.debug(f"{self.name}: no emotes for {scope}")
            else:
                logger.warning(f"{self.name} emotes for {scope} failed: {e}")
            return []
        except PayloadError as e:
            logger.warning(f"{self.name} emotes for {scope} malformed: {e}")
            return []
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{self.name} emotes for {scope} error: {e!r}")
            return []

        logger.debug(f"{self.name}: {len(emotes)} emotes for {scope}")
        return emotes
