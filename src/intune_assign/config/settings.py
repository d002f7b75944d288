from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "IntuneAppAssign"
ENV_PREFIX = "INTUNE_ASSIGN_"
ENV_FILE_NAME = "settings.env"
TOKEN_CACHE_NAME = "msal_cache.bin"
LOGIN_HOST = "https://login.microsoftonline.com"

DEFAULT_GRAPH_SCOPES: tuple[str, ...] = (
    "https://graph.microsoft.com/DeviceManagementApps.ReadWrite.All",
    "https://graph.microsoft.com/Group.Read.All",
)


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    """Directory holding ``settings.env``."""
    return _ensure(Path(user_config_dir(APP_NAME, roaming=True)))


def cache_dir() -> Path:
    """Directory holding the MSAL token cache and logs."""
    return _ensure(Path(user_cache_dir(APP_NAME)))


def log_dir() -> Path:
    return _ensure(cache_dir() / "logs")


@dataclass(slots=True)
class Settings:
    """App registration details used to sign in to Microsoft Graph.

    Sign-in uses an MSAL public client, so the registration must allow the
    "Mobile and desktop applications" platform and carries no secret. Without
    a tenant id the multi-tenant ``common`` authority is used.
    """

    client_id: str | None = None
    tenant_id: str | None = None
    authority: str | None = None
    graph_scopes: list[str] = field(default_factory=lambda: list(DEFAULT_GRAPH_SCOPES))
    token_cache_path: Path = field(default_factory=lambda: cache_dir() / TOKEN_CACHE_NAME)

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id)

    def configured_scopes(self) -> list[str]:
        """Configured scopes followed by any missing defaults, without duplicates."""

        merged = [*self.graph_scopes, *DEFAULT_GRAPH_SCOPES]
        return list(dict.fromkeys(scope for scope in merged if scope))

    def derive_authority(self) -> str:
        return self.authority or f"{LOGIN_HOST}/{self.tenant_id or 'common'}"


class SettingsManager:
    """Read ``INTUNE_ASSIGN_*`` variables, with ``settings.env`` as a fallback.

    Variables already present in the environment win over the file.
    ``INTUNE_ASSIGN_SCOPES`` is a semicolon-separated list.
    """

    def __init__(self, env_file: Path | None = None) -> None:
        self.env_file = env_file or config_dir() / ENV_FILE_NAME

    def load(self) -> Settings:
        load_dotenv(self.env_file, override=False)
        settings = Settings(
            client_id=_env("CLIENT_ID"),
            tenant_id=_env("TENANT_ID"),
            authority=_env("AUTHORITY"),
        )
        scopes = [scope.strip() for scope in (_env("SCOPES") or "").split(";")]
        if any(scopes):
            settings.graph_scopes = [scope for scope in scopes if scope]
        cache_path = _env("TOKEN_CACHE_PATH")
        if cache_path:
            settings.token_cache_path = Path(cache_path).expanduser()
        return settings


def _env(name: str) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}") or None


__all__ = [
    "DEFAULT_GRAPH_SCOPES",
    "ENV_PREFIX",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
