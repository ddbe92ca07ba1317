# src/indexsync/core/config.py
"""
Configuration schema and loading for the indexing service client.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from indexsync.contracts.enums import Protocol


class RetrySettings(BaseModel):
    """Retry behavior for document operations.

    max_attempts is the TOTAL number of exchanges per operation, so the
    default of 3 means: try, re-login and retry, re-login and retry.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    max_attempts: int = Field(default=3, gt=0, description="Total attempts per operation")
    delay_seconds: float = Field(default=1.0, ge=0, description="Fixed delay between attempts")


class ClientSettings(BaseModel):
    """Connection and credential settings for the indexing service.

    Example YAML:
        secure: true
        address: "index.example.com:8443"
        username: "sync"
        password: "${INDEXSYNC_PASSWORD}"
        login_path: "api/login"
        retry:
          max_attempts: 3
          delay_seconds: 1.0
    """

    model_config = {"frozen": True, "extra": "forbid"}

    secure: bool = Field(default=False, description="Use https instead of http")
    address: str = Field(description="Host and optional port of the service")
    username: str = Field(description="Login username")
    password: str = Field(description="Login password")
    login_path: str = Field(description="Login endpoint path, relative to the address")
    insecure_skip_verify: bool = Field(
        default=False,
        description="Disable TLS certificate verification (https only; never enable in production)",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")
    retry: RetrySettings = Field(default_factory=RetrySettings)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Address is host[:port] without scheme or trailing slash."""
        v = v.strip()
        if not v:
            raise ValueError("address must be non-empty")
        if "://" in v:
            raise ValueError("address must not include a scheme; use 'secure' to select https")
        return v.rstrip("/")

    @field_validator("login_path")
    @classmethod
    def validate_login_path(cls, v: str) -> str:
        v = v.strip().strip("/")
        if not v:
            raise ValueError("login_path must be non-empty")
        return v

    @property
    def protocol(self) -> Protocol:
        return Protocol.SECURE if self.secure else Protocol.PLAIN


_ENV_REF = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

# Keys Dynaconf adds to as_dict() that are not settings
_DYNACONF_KEYS = frozenset({"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"})


def _substitute(match: re.Match[str]) -> str:
    value = os.environ.get(match.group(1), match.group(2))
    # Unresolved references stay literal so validation reports them in place
    return match.group(0) if value is None else value


def _normalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Lowercase keys and resolve ${VAR} / ${VAR:-default} in string values."""
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            value = _normalize(value)
        elif isinstance(value, str):
            value = _ENV_REF.sub(_substitute, value)
        normalized[str(key).lower()] = value
    return normalized


def load_settings(config_path: Path) -> ClientSettings:
    """Read a settings file, apply INDEXSYNC_* overrides, and validate.

    Environment variables win over the file. Nested keys use a double
    underscore: ``INDEXSYNC_RETRY__MAX_ATTEMPTS=5``.

    Raises:
        FileNotFoundError: If config_path does not exist
        ValidationError: If the merged settings are invalid
    """
    from dynaconf import Dynaconf

    # Dynaconf treats a missing settings file as empty
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    loaded = Dynaconf(
        envvar_prefix="INDEXSYNC",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    ).as_dict()
    raw = {key: value for key, value in loaded.items() if key not in _DYNACONF_KEYS}
    return ClientSettings(**_normalize(raw))


def resolve_config(settings: ClientSettings) -> dict[str, Any]:
    """Convert validated settings to a dict safe for display or logging.

    The password is masked; everything else (explicit + defaults) is kept.
    """
    resolved = settings.model_dump(mode="json")
    resolved["password"] = "***"
    return resolved
