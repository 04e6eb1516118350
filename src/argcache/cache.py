#!/usr/bin/env python3
"""
Argument Cache Engine
Memoizes a getter of fixed arity, keyed by (a selection of) its arguments

Implements:
- get(*args) → cached value, or getter(*args) once on miss (missing args → None)
- set(*args, value) → overwrite a slot without calling the getter
- invalidate(*keys) → drop one leaf or a whole subtree by key prefix
- invalidate_all() → forget everything
- stats() → {hits, misses, sets, invalidations, getter_failures, entries}
"""

import contextlib
import functools
import inspect
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional

from .config import DEFAULT_CONFIG, CacheConfig
from .key_order import KeyOrder
from .store import MISSING, CacheStore

logger = logging.getLogger(__name__)


class ArgumentCache:
    """
    Multi-level cache bound to one getter.

    Design principles:
    - One nested mapping level per key position, outermost first
    - Keys held weakly where possible: entries for collected objects vanish
    - A failed getter call is never cached
    - One re-entrant lock per instance: concurrent misses on the same
      arguments evaluate the getter once
    """

    def __init__(
        self,
        getter: Callable[..., Any],
        arity: int,
        key_order: Optional[Iterable[int]] = None,
        *,
        config: Optional[CacheConfig] = None,
        name: Optional[str] = None,
    ):
        if not callable(getter):
            raise TypeError(f"getter must be callable, got {type(getter).__name__}")

        self.config = config or DEFAULT_CONFIG
        self.getter = getter
        self.name = name or getattr(getter, "__qualname__", repr(getter))
        self.key_order = KeyOrder.create(arity, key_order, strict=self.config.strict_key_order)
        self._store = CacheStore(self.key_order.depth, weak_keys=self.config.weak_keys)
        self._lock = threading.RLock() if self.config.thread_safe else contextlib.nullcontext()

        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "invalidations": 0,
            "getter_failures": 0,
            "start_time": time.time(),
        }

        logger.debug(
            f"ArgumentCache created for {self.name} "
            f"(arity={arity}, key_order={self.key_order.positions})"
        )

    @classmethod
    def create(cls, getter: Callable[..., Any], arity: int, *key_order: int, **kwargs) -> "ArgumentCache":
        """Construct with key positions given as varargs; none means identity order."""
        return cls(getter, arity, key_order or None, **kwargs)

    @property
    def arity(self) -> int:
        return self.key_order.arity

    def _check_call_args(self, args: tuple, method: str) -> None:
        if len(args) > self.arity:
            raise TypeError(
                f"{self.name}: {method}() takes at most {self.arity} arguments ({len(args)} given)"
            )

    def get(self, *args: Any) -> Any:
        """
        Return the cached value for `args`, calling the getter on a miss.

        Missing trailing arguments and None share the NULL slot; the getter
        receives None for each missing one. Exceptions raised by the getter
        propagate and leave the slot empty.
        """
        self._check_call_args(args, "get")
        path = self.key_order.key_path(args)
        call_args = args + (None,) * (self.arity - len(args))

        with self._lock:
            level, key = self._store.leaf(path)
            value = level.get(key)
            if value is not MISSING:
                self._stats["hits"] += 1
                return value

            self._stats["misses"] += 1
            try:
                value = self.getter(*call_args)
            except Exception:
                self._stats["getter_failures"] += 1
                raise
            level[key] = value
            return value

    def set(self, *args: Any) -> None:
        """Store the last argument as the value for the preceding call arguments."""
        if not args:
            raise TypeError(f"{self.name}: set() requires a value")
        *call_args, value = args
        self._check_call_args(call_args, "set")
        path = self.key_order.key_path(call_args)

        with self._lock:
            self._store.store(path, value)
            self._stats["sets"] += 1

    def invalidate(self, *keys: Any) -> bool:
        """
        Forget the entries under a key prefix.

        Keys follow the nesting order of `key_order`, not the getter's
        argument order. A full key tuple drops one value, a shorter prefix
        drops every entry beneath it. Returns False when nothing was stored.
        """
        prefix = self.key_order.prefix(keys)

        with self._lock:
            removed = self._store.remove(prefix)
            if removed:
                self._stats["invalidations"] += 1

        logger.debug(f"{self.name}: invalidate{prefix} removed={removed}")
        return removed

    def invalidate_all(self) -> None:
        """Drop the whole tree; the next get behaves as on a fresh cache."""
        with self._lock:
            self._store.clear()
            self._stats["invalidations"] += 1
        logger.debug(f"{self.name}: invalidated all entries")

    def __contains__(self, args: Any) -> bool:
        """
        True when a value is stored for the call tuple `args` (no getter call).

        A tuple is always the full argument tuple: on a cache keyed by tuples
        write `((1, 2),) in cache`. A non-tuple stands for a one-argument call.
        """
        if not isinstance(args, tuple):
            args = (args,)
        self._check_call_args(args, "contains")
        path = self.key_order.key_path(args)
        with self._lock:
            return self._store.lookup(path) is not MISSING

    def __len__(self) -> int:
        with self._lock:
            return self._store.count_entries()

    def __repr__(self) -> str:
        return f"<ArgumentCache {self.name} arity={self.arity} key_order={self.key_order.positions}>"

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total_requests * 100) if total_requests > 0 else 0.0
        uptime = time.time() - self._stats["start_time"]

        return {
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "hit_rate_percent": round(hit_rate, 1),
            "total_requests": total_requests,
            "sets": self._stats["sets"],
            "invalidations": self._stats["invalidations"],
            "getter_failures": self._stats["getter_failures"],
            "entries": len(self),
            "uptime_seconds": int(uptime),
        }


def _positional_arity(func: Callable[..., Any]) -> int:
    parameters = inspect.signature(func).parameters.values()
    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in parameters):
        raise TypeError(f"cannot infer arity of variadic function {func.__qualname__}")
    return sum(1 for p in parameters if p.kind in positional)


def cached(arity: Optional[int] = None, *key_order: int, config: Optional[CacheConfig] = None):
    """
    Decorator form: memoize a function through an ArgumentCache.

    The wrapper exposes the cache as `wrapper.cache` plus `invalidate`,
    `invalidate_all` and `set` shortcuts. Arity defaults to the number of
    positional parameters.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        func_arity = _positional_arity(func) if arity is None else arity
        cache = ArgumentCache(func, func_arity, key_order or None, config=config)

        @functools.wraps(func)
        def wrapper(*args: Any) -> Any:
            return cache.get(*args)

        wrapper.cache = cache
        wrapper.invalidate = cache.invalidate
        wrapper.invalidate_all = cache.invalidate_all
        wrapper.set = cache.set
        return wrapper

    return decorator
