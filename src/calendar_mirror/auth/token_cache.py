"""Token cache management using msal-extensions."""

import logging
import sys
from pathlib import Path
from typing import Optional

from msal_extensions import (
    FilePersistence,
    KeychainPersistence,
    LibsecretPersistence,
    PersistedTokenCache,
)

from ..utils.exceptions import TokenCacheError

logger = logging.getLogger(__name__)

APP_NAME = "calendar_mirror"


class TokenCacheManager:
    """Manages the persisted MSAL token cache."""

    def __init__(
        self,
        cache_location: Path,
        cache_name: str = "calendar_mirror_cache",
        encrypted: bool = True,
    ):
        """
        Initialize token cache manager.

        Args:
            cache_location: Directory for cache storage
            cache_name: Name of the cache file
            encrypted: Whether to use the platform's secret store
        """
        self.cache_location = cache_location
        self.cache_name = cache_name
        self.encrypted = encrypted
        self._cache: Optional[PersistedTokenCache] = None

    @property
    def cache_file(self) -> Path:
        suffix = "bin" if self.encrypted else "json"
        return self.cache_location / f"{self.cache_name}.{suffix}"

    def _persistence(self):
        if not self.encrypted:
            return FilePersistence(str(self.cache_file))
        if sys.platform == "darwin":
            return KeychainPersistence(str(self.cache_file), APP_NAME, self.cache_name)
        if sys.platform.startswith("linux"):
            try:
                return LibsecretPersistence(
                    str(self.cache_file),
                    schema_name=APP_NAME,
                    attributes={"app": self.cache_name},
                )
            except (ImportError, ValueError, RuntimeError) as e:
                # libsecret needs a desktop session; headless hosts fall back to a file
                logger.warning(f"libsecret unavailable ({e}), using file token cache")
        return FilePersistence(str(self.cache_file))

    def get_cache(self) -> PersistedTokenCache:
        """
        Get or create the token cache.

        Raises:
            TokenCacheError: If cache initialization fails
        """
        if self._cache is not None:
            return self._cache

        try:
            self.cache_location.mkdir(parents=True, exist_ok=True)
            self._cache = PersistedTokenCache(self._persistence())
        except OSError as e:
            raise TokenCacheError(f"Failed to initialize token cache: {e}") from e

        logger.info(f"Token cache initialized at {self.cache_location}")
        return self._cache

    def clear_cache(self) -> None:
        """Remove the persisted cache file."""
        self._cache = None
        try:
            self.cache_file.unlink(missing_ok=True)
        except OSError as e:
            raise TokenCacheError(f"Failed to clear token cache: {e}") from e
        logger.info("Token cache cleared")
