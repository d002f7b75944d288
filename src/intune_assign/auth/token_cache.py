from __future__ import annotations

from pathlib import Path

import msal

from intune_assign.config.settings import TOKEN_CACHE_NAME, cache_dir
from intune_assign.utils import get_logger


logger = get_logger(__name__)


class TokenCacheManager:
    """MSAL token cache persisted as JSON in the cache directory.

    ``cache`` stays the same object for the manager's lifetime, so an MSAL
    client built around it keeps seeing cleared or reloaded state.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or cache_dir() / TOKEN_CACHE_NAME
        self.cache = msal.SerializableTokenCache()
        self._load()

    def _load(self) -> None:
        try:
            state = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        try:
            self.cache.deserialize(state)
        except ValueError:
            logger.warning("Discarding unreadable token cache", path=str(self.path))
            self.cache.deserialize("")

    def save(self) -> bool:
        """Write the cache when MSAL changed it; report whether a write happened."""

        if not self.cache.has_state_changed:
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.cache.serialize(), encoding="utf-8")
        self.cache.has_state_changed = False
        return True

    def clear(self) -> bool:
        """Forget every cached token; report whether a cache file was removed."""

        self.cache.deserialize("")
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Removed token cache", path=str(self.path))
        return True


__all__ = ["TokenCacheManager"]
