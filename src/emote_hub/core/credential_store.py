"""Read-only lookup of the Twitch client secret in the system keyring.

The service never writes to the keyring. Operators store the secret once,
e.g. ``keyring set emote-hub twitch_client_secret``, and settings.json or
the environment are used when no keyring backend is usable.
"""

import logging

import keyring
from keyring.backends.fail import Keyring as FailKeyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)

SERVICE_NAME = "emote-hub"
KEY_TWITCH_CLIENT_SECRET = "twitch_client_secret"

# None until the first lookup decides
_keyring_available: bool | None = None


def is_available() -> bool:
    """Whether a real keyring backend is configured (checked once)."""
    global _keyring_available
    if _keyring_available is None:
        backend = keyring.get_keyring()
        _keyring_available = not isinstance(backend, FailKeyring)
        logger.debug(f"Keyring backend: {type(backend).__name__}")
    return _keyring_available


def get_secret(key: str) -> str | None:
    """Return the stored secret for ``key``, or None if absent or unreadable."""
    if not is_available():
        return None

    try:
        return keyring.get_password(SERVICE_NAME, key)
    except KeyringError as e:
        # Locked or headless backends fail here; fall back to file/env
        logger.warning(f"Could not read '{key}' from keyring: {e}")
        return None
