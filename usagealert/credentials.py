"""OAuth credential lookup for the Claude Code CLI."""

import json
import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from .config import DEFAULT_KEYCHAIN_SERVICE

logger = logging.getLogger(__name__)

KEYCHAIN_TIMEOUT = 5
REFRESH_TIMEOUT = 60


@dataclass
class Credentials:
    """An OAuth access token and its expiry."""
    access_token: Optional[str] = None
    expires_at: Optional[int] = None  # epoch millis


class CredentialProvider(Protocol):
    def resolve(self) -> Optional[Credentials]: ...

    def refresh(self) -> bool: ...


def parse_credentials(data: dict) -> Optional[Credentials]:
    """Pull the token out of a Claude Code credentials document."""
    oauth = (data or {}).get("claudeAiOauth") or {}
    token = oauth.get("accessToken")
    if not token:
        return None
    expires_at = oauth.get("expiresAt")
    return Credentials(
        access_token=token,
        expires_at=int(expires_at) if expires_at else None,
    )


class ClaudeCredentialProvider:
    """Reads credentials from the macOS keychain or the Linux config files."""

    CREDENTIAL_FILES = [
        Path.home() / ".config" / "claude" / "credentials.json",
        Path.home() / ".claude" / "credentials.json",
        Path.home() / ".claude" / ".credentials.json",
    ]

    def __init__(
        self,
        service_name: str = DEFAULT_KEYCHAIN_SERVICE,
        platform: Optional[str] = None,
        credential_files: Optional[list[Path]] = None,
    ):
        self.service_name = service_name
        self.platform = platform or sys.platform
        self.credential_files = credential_files or self.CREDENTIAL_FILES

    def resolve(self) -> Optional[Credentials]:
        if self.platform == "darwin":
            return self._from_keychain()
        return self._from_files()

    def _from_keychain(self) -> Optional[Credentials]:
        try:
            result = subprocess.run(
                ["security", "find-generic-password", "-s", self.service_name, "-w"],
                capture_output=True,
                text=True,
                check=True,
                timeout=KEYCHAIN_TIMEOUT,
            )
            return parse_credentials(json.loads(result.stdout.strip()))
        except (subprocess.SubprocessError, json.JSONDecodeError, OSError) as e:
            logger.warning(f"Keychain lookup for '{self.service_name}' failed: {e}")
            return None

    def _from_files(self) -> Optional[Credentials]:
        for path in self.credential_files:
            try:
                with open(path, "r") as f:
                    creds = parse_credentials(json.load(f))
            except FileNotFoundError:
                continue
            except (OSError, json.JSONDecodeError, AttributeError) as e:
                logger.warning(f"Skipping unreadable credentials file {path}: {e}")
                continue
            if creds:
                logger.debug(f"Loaded OAuth token from {path}")
                return creds
        return None

    def refresh(self) -> bool:
        """Run a one-turn CLI prompt so the CLI renews its own token."""
        try:
            subprocess.run(
                ["claude", "--print", "--max-turns", "1"],
                input="hi",
                capture_output=True,
                text=True,
                check=True,
                timeout=REFRESH_TIMEOUT,
            )
            logger.info("Token refresh via claude CLI succeeded")
            return True
        except (subprocess.SubprocessError, OSError) as e:
            logger.warning(f"Token refresh via claude CLI failed: {e}")
            return False
