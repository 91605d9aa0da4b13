from .cache_manager import CacheEntry, CacheManager

__all__ = ["CacheEntry", "CacheManager"]
