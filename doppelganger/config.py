"""
Config — Server settings from environment variables and CLI flags.

## Environment Variables

- DOPPELGANGER_GITHUB_TOKEN: GitHub access token (required)
- DOPPELGANGER_GITHUB_API_URL: GitHub API root (default: https://api.github.com)
- DOPPELGANGER_ADDR: listen host (default: all interfaces)
- DOPPELGANGER_PORT: listen port (default: 8081)
- DOPPELGANGER_MIRROR_DIR: mirror root (default: $GOPATH/src/github.com)
- DOPPELGANGER_PRIVATE_KEY: SSH private key used by git (default: ~/.ssh/id_rsa)
- DOPPELGANGER_PUBLIC_URL: external base URL used for webhook callbacks
- DOPPELGANGER_TRACKING: register push webhooks after create (default: true)
- DOPPELGANGER_REQUEST_TIMEOUT: seconds before git/API work of a request is cancelled

CLI flags win over environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

TOKEN_ENV = "DOPPELGANGER_GITHUB_TOKEN"
DEFAULT_PORT = 8081
DEFAULT_API_URL = "https://api.github.com"


def default_mirror_dir() -> Path:
    """Where `go get` would put GitHub sources."""
    gopath = os.environ.get("GOPATH") or str(Path.home() / "go")
    return Path(gopath.split(os.pathsep)[0]) / "src" / "github.com"


def default_private_key_path() -> Path:
    return Path(os.environ.get("HOME") or Path.home()) / ".ssh" / "id_rsa"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.lower() in ("true", "1", "yes")


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"{name}={value!r} is not a number, ignoring")
        return None


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at startup."""

    github_token: str = ""
    github_api_url: str = DEFAULT_API_URL
    addr: str = ""
    port: int = DEFAULT_PORT
    mirror_dir: Path = Path(".")
    private_key_path: Path = Path(".")
    public_url: Optional[str] = None
    tracking_enabled: bool = True
    request_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "Settings":
        port = os.environ.get("DOPPELGANGER_PORT")
        mirror_dir = os.environ.get("DOPPELGANGER_MIRROR_DIR")
        private_key = os.environ.get("DOPPELGANGER_PRIVATE_KEY")

        try:
            port_num = int(port) if port else DEFAULT_PORT
        except ValueError:
            raise ConfigError(f"DOPPELGANGER_PORT must be an integer, got {port!r}")

        return cls(
            github_token=os.environ.get(TOKEN_ENV, ""),
            github_api_url=os.environ.get("DOPPELGANGER_GITHUB_API_URL") or DEFAULT_API_URL,
            addr=os.environ.get("DOPPELGANGER_ADDR", ""),
            port=port_num,
            mirror_dir=Path(mirror_dir) if mirror_dir else default_mirror_dir(),
            private_key_path=Path(private_key) if private_key else default_private_key_path(),
            public_url=os.environ.get("DOPPELGANGER_PUBLIC_URL") or None,
            tracking_enabled=_env_bool("DOPPELGANGER_TRACKING", True),
            request_timeout=_env_float("DOPPELGANGER_REQUEST_TIMEOUT"),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> None:
        if not self.github_token:
            raise ConfigError(
                f"Missing GitHub access token (set {TOKEN_ENV} environment variable)"
            )
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid port {self.port}")

    @property
    def listen_address(self) -> str:
        return f"{self.addr}:{self.port}"
