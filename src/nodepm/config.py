"""Persisted settings for nodepm."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from nodepm.logging import get_logger

APP_VERSION = "0.7.0"
API_KEY_ENV = "OPENAI_API_KEY"

log = get_logger()


def config_dir() -> Path:
    """Configuration directory."""
    return Path.home() / ".config" / "nodepm"


def config_path() -> Path:
    """Path to config file."""
    return config_dir() / "config.toml"


@dataclass
class Config:
    """Stored credential and the version that wrote it."""

    api_key: str | None = None
    version: str | None = None

    def save(self, path: Path | None = None) -> Path:
        """Save config to TOML file, returning the path written.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        path = path or config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        if self.api_key is not None:
            doc.add("api_key", self.api_key)
        if self.version is not None:
            doc.add("version", self.version)

        path.write_text(tomlkit.dumps(doc))
        # The file holds a credential
        path.chmod(0o600)
        return path

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file.

        A missing, unreadable or corrupt file yields an empty Config.
        """
        path = path or config_path()
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = tomlkit.load(f).unwrap()
        except (OSError, UnicodeDecodeError, TOMLKitError) as e:
            log.warning("config_unreadable", path=str(path), error=str(e))
            return cls()

        api_key = data.get("api_key")
        version = data.get("version")
        return cls(
            api_key=api_key if isinstance(api_key, str) and api_key else None,
            version=version if isinstance(version, str) else None,
        )


def resolve_api_key(
    config: Config,
    environ: Mapping[str, str] | None = None,
    path: Path | None = None,
) -> str | None:
    """Return the API key to use, preferring the environment.

    An environment key is written to the config file the first time it is seen
    while no key is stored; a stored key is never overwritten.
    """
    environ = os.environ if environ is None else environ
    env_key = environ.get(API_KEY_ENV) or None

    if env_key and not config.api_key:
        config.api_key = env_key
        config.version = APP_VERSION
        try:
            config.save(path)
        except OSError as e:
            # The environment key still works for this session
            log.warning("config_save_failed", error=str(e))

    return env_key or config.api_key


def store_api_key(config: Config, api_key: str, path: Path | None = None) -> Path:
    """Record an interactively captured key and save it.

    Raises:
        OSError: If the config file cannot be written.
    """
    config.api_key = api_key
    config.version = APP_VERSION
    return config.save(path)
