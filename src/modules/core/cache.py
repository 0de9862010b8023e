"""Read-through response cache on top of Django's cache framework.

Logical keys look like ``<namespace>:<rest>`` (``orders:7``,
``order:42-items``).  The part before the first colon is the namespace.

- **Namespace eviction**: every namespace has a generation number stored
  in the cache and passed as the Django cache ``version``.  Bumping it makes
  every key of the namespace unreachable at once, which works the same on
  Redis and on LocMem (no key scans).
- **Single-flight**: ``get_or_set`` serialises populate-on-miss per key
  inside the process: concurrent readers of the same missing key run the
  loader once; the others wait and read the stored value.
- **Read-your-writes**: ``evict`` takes the same per-key lock as the
  populate path, so a value computed before an eviction can never be
  written after it.  A populate racing a namespace eviction writes under
  the old generation, where nobody reads any more.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional, TypeVar

import structlog
from django.conf import settings
from django.core.cache import caches

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_MISSING = object()
_LOCK_STRIPES = 64


def namespace_of(key: str) -> str:
    return key.split(":", 1)[0]


class ResponseCache:
    """Namespaced, single-flight wrapper around a Django cache alias."""

    def __init__(self, alias: str = "default", timeout: Optional[int] = None) -> None:
        self._alias = alias
        self._timeout = timeout
        # Striped locks: bounded memory, at most one populate per key.
        self._locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _backend(self):
        return caches[self._alias]

    @property
    def timeout(self) -> int:
        if self._timeout is not None:
            return self._timeout
        return settings.RESPONSE_CACHE_TIMEOUT

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % _LOCK_STRIPES]

    @staticmethod
    def _generation_key(namespace: str) -> str:
        return f"cache-generation:{namespace}"

    def generation(self, namespace: str) -> int:
        """Current generation of *namespace*, created on first use."""
        gen_key = self._generation_key(namespace)
        value = self._backend.get(gen_key)
        if value is None:
            # time-based seed: a lost counter never resurrects old entries
            self._backend.add(gen_key, time.time_ns(), timeout=None)
            value = self._backend.get(gen_key)
        return value

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        version = self.generation(namespace_of(key))
        return self._backend.get(key, default, version=version)

    def get_or_set(self, key: str, loader: Callable[[], T]) -> T:
        """Return the cached value for *key*, running *loader* once on a miss.

        Exceptions raised by *loader* propagate and nothing is stored.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug("cache.hit", key=key)
            return value

        with self._lock_for(key):
            version = self.generation(namespace_of(key))
            value = self._backend.get(key, _MISSING, version=version)
            if value is not _MISSING:
                logger.debug("cache.hit_after_wait", key=key)
                return value

            value = loader()
            self._backend.set(key, value, self.timeout, version=version)
            logger.info("cache.populated", key=key)
            return value

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def evict(self, *keys: str) -> None:
        """Delete the given logical keys (no-op for absent keys)."""
        for key in keys:
            with self._lock_for(key):
                version = self.generation(namespace_of(key))
                self._backend.delete(key, version=version)
        logger.info("cache.evicted", keys=list(keys))

    def evict_namespace(self, namespace: str) -> None:
        """Make every key of *namespace* unreachable."""
        gen_key = self._generation_key(namespace)
        try:
            self._backend.incr(gen_key)
        except ValueError:
            self._backend.set(gen_key, time.time_ns(), timeout=None)
        logger.info("cache.namespace_evicted", namespace=namespace)
