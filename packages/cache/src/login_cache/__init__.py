"""In-process key/value cache used to hold the last observed User."""

from login_cache.cache import CacheClient

__all__ = ["CacheClient"]
