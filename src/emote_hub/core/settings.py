"""Settings management for Emote Hub."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from appdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "emote-hub"
APP_AUTHOR = "emote-hub"

# Channel that always contributes emotes alongside the main one
DEFAULT_OTHER_CHANNEL_IDS = ["108098985"]

DEFAULT_REFRESH_INTERVAL = 15 * 60  # seconds


def get_config_dir() -> Path:
    """Get the configuration directory."""
    path = Path(user_config_dir(APP_NAME, APP_AUTHOR))
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass
class TwitchSettings:
    """Twitch app credentials for the client-credentials flow."""

    client_id: str = ""
    client_secret: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class ChannelSettings:
    """Channels whose emotes are aggregated."""

    main_channel_id: str = ""
    other_channel_ids: list[str] = field(default_factory=lambda: list(DEFAULT_OTHER_CHANNEL_IDS))


@dataclass
class RefreshSettings:
    """Refresh cycle and upstream request settings."""

    interval: int = DEFAULT_REFRESH_INTERVAL  # seconds
    request_timeout: int = 15  # seconds, per upstream request
    max_retries: int = 2  # per upstream request, transport errors and 5xx/429 only


@dataclass
class ServerSettings:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "public"


@dataclass
class Settings:
    """Application settings."""

    twitch: TwitchSettings = field(default_factory=TwitchSettings)
    channels: ChannelSettings = field(default_factory=ChannelSettings)
    refresh: RefreshSettings = field(default_factory=RefreshSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    @classmethod
    def load(cls, path: Path | None = None, environ: dict | None = None) -> "Settings":
        """Load settings from file, then apply keyring and environment overrides."""
        from . import credential_store

        if environ is None:
            environ = dict(os.environ)

        if path is None:
            env_path = environ.get("EMOTE_HUB_CONFIG")
            path = Path(env_path) if env_path else get_config_dir() / "settings.json"

        settings = cls()
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
                settings = cls._from_dict(data)
            except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring unreadable settings file {path}: {e}")

        # Keyring overrides the JSON value
        kr_secret = credential_store.get_secret(credential_store.KEY_TWITCH_CLIENT_SECRET)
        if kr_secret:
            settings.twitch.client_secret = kr_secret

        settings._apply_env(environ)
        return settings

    @staticmethod
    def _validate_int(value, default: int, min_val: int = 0, max_val: int | None = None) -> int:
        """Validate and constrain an integer value."""
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        if value < min_val:
            return min_val
        if max_val is not None and value > max_val:
            return max_val
        return value

    @staticmethod
    def _parse_channel_ids(value) -> list[str] | None:
        """Accept a list of ids or a comma-separated string."""
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, list):
            return None
        return [str(v).strip() for v in value if str(v).strip()]

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        """Create Settings from a dictionary with validation."""
        settings = cls()

        if "twitch" in data:
            t = data["twitch"]
            settings.twitch = TwitchSettings(
                client_id=t.get("client_id", ""),
                client_secret=t.get("client_secret", ""),
            )

        if "channels" in data:
            c = data["channels"]
            settings.channels.main_channel_id = str(c.get("main_channel_id", "") or "")
            other = cls._parse_channel_ids(c.get("other_channel_ids"))
            if other is not None:
                settings.channels.other_channel_ids = other

        if "refresh" in data:
            r = data["refresh"]
            settings.refresh = RefreshSettings(
                interval=cls._validate_int(
                    r.get("interval"), DEFAULT_REFRESH_INTERVAL, min_val=60, max_val=86400
                ),
                request_timeout=cls._validate_int(
                    r.get("request_timeout"), 15, min_val=1, max_val=120
                ),
                max_retries=cls._validate_int(r.get("max_retries"), 2, min_val=0, max_val=10),
            )

        if "server" in data:
            s = data["server"]
            settings.server = ServerSettings(
                host=s.get("host", "0.0.0.0"),
                port=cls._validate_int(s.get("port"), 3000, min_val=1, max_val=65535),
                static_dir=s.get("static_dir", "public"),
            )

        return settings

    def _apply_env(self, environ: dict) -> None:
        """Apply the environment variables the server was historically configured with."""
        if environ.get("TWITCH_CHANNEL_ID"):
            self.channels.main_channel_id = environ["TWITCH_CHANNEL_ID"].strip()
        if environ.get("TWITCH_CLIENT_ID"):
            self.twitch.client_id = environ["TWITCH_CLIENT_ID"].strip()
        if environ.get("TWITCH_CLIENT_SECRET"):
            self.twitch.client_secret = environ["TWITCH_CLIENT_SECRET"].strip()
        if "OTHER_CHANNEL_IDS" in environ:
            other = self._parse_channel_ids(environ["OTHER_CHANNEL_IDS"])
            if other is not None:
                self.channels.other_channel_ids = other
        if environ.get("PORT"):
            try:
                port = int(environ["PORT"])
            except ValueError:
                logger.warning(f"Ignoring invalid PORT: {environ['PORT']!r}")
            else:
                self.server.port = self._validate_int(port, 3000, min_val=1, max_val=65535)
