"""Disk cache for RPC reads.

Only data pinned to a block number is cached: it never changes once the block is final.
"""

import hashlib
import json
import os
import shutil
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from scrvusd_oracle.constants import CACHE_DIR_NAME, CACHE_VERSION


def get_cache_dir() -> Path:
    """Get the cache directory path. Uses XDG_CACHE_HOME if available, otherwise ~/.cache."""
    cache_home = os.getenv("XDG_CACHE_HOME")
    base = Path(cache_home) if cache_home else Path.home() / ".cache"
    cache_dir = base / CACHE_DIR_NAME
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def clear_cache() -> None:
    """Clear all cached data."""
    cache_dir = get_cache_dir()
    if cache_dir.exists():
        shutil.rmtree(cache_dir)
        print("✅ Cache cleared successfully.", file=sys.stderr)
    else:
        print("ℹ️  Cache directory does not exist (nothing to clear).", file=sys.stderr)


def cache_key(prefix: str, *parts: Any) -> str:
    """Generate a deterministic cache key from prefix and parts."""
    key_str = f"{prefix}:{CACHE_VERSION}:" + ":".join(str(p).lower() for p in parts)
    return hashlib.sha256(key_str.encode()).hexdigest()


def get_cached(key: str) -> Any | None:
    """Get cached data by key. Returns None if not found or unreadable."""
    cache_file = get_cache_dir() / f"{key}.json"
    if not cache_file.exists():
        return None
    try:
        with cache_file.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        # Corrupted entries are refetched
        return None


def set_cached(key: str, data: Any) -> None:
    """Store data in cache. A failed write only costs a refetch later."""
    cache_file = get_cache_dir() / f"{key}.json"
    try:
        with cache_file.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, separators=(",", ":"))
    except OSError as ex:
        print(f"⚠️  Cache write failed ({cache_file.name}): {ex}", file=sys.stderr)


def cached(key: str, fetch: Callable[[], Any], *, use_cache: bool = True) -> Any:
    """Return the cached value for `key`, calling `fetch` and storing its result on a miss."""
    if use_cache:
        hit = get_cached(key)
        if hit is not None:
            return hit
    value = fetch()
    if use_cache:
        set_cached(key, value)
    return value
