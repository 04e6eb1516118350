"""
Cache Store — nested mapping tree with weakly held keys

Each level maps one key to either the next level or, at the last level, to
the stored value. Keys that support weak references (handles, plain class
instances, functions) are held weakly, so an entry disappears once nothing
outside the cache references its key. Numbers, strings, tuples and NULL stay
until they are invalidated.
"""

from __future__ import annotations

import weakref
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def supports_weakref(key: Any) -> bool:
    try:
        weakref.ref(key)
    except TypeError:
        return False
    return True


class WeakKeyLevel:
    """One mapping level: a weak-keyed bucket plus a strong bucket."""

    __slots__ = ("_strong", "_weak")

    def __init__(self, weak_keys: bool = True) -> None:
        self._strong: Dict[Any, Any] = {}
        self._weak: Optional[weakref.WeakKeyDictionary] = (
            weakref.WeakKeyDictionary() if weak_keys else None
        )

    def _bucket(self, key: Any):
        if self._weak is not None and supports_weakref(key):
            return self._weak
        return self._strong

    def get(self, key: Any, default: Any = MISSING) -> Any:
        return self._bucket(key).get(key, default)

    def __setitem__(self, key: Any, value: Any) -> None:
        self._bucket(key)[key] = value

    def pop(self, key: Any, default: Any = MISSING) -> Any:
        return self._bucket(key).pop(key, default)

    def __contains__(self, key: Any) -> bool:
        return key in self._bucket(key)

    def values(self) -> Iterator[Any]:
        yield from self._strong.values()
        if self._weak is not None:
            yield from self._weak.values()

    def __len__(self) -> int:
        weak_count = len(self._weak) if self._weak is not None else 0
        return len(self._strong) + weak_count


class CacheStore:
    """
    Tree of WeakKeyLevel mappings, `depth` levels deep.

    Paths handed in are already reduced to keys (NULL substituted), so the
    store never looks at call arguments.
    """

    def __init__(self, depth: int, weak_keys: bool = True) -> None:
        if depth < 1:
            raise ValueError(f"store depth must be at least 1, got {depth}")
        self.depth = depth
        self.weak_keys = weak_keys
        self.root = WeakKeyLevel(weak_keys)

    def _walk(self, keys: Sequence[Any], create: bool) -> Optional[WeakKeyLevel]:
        level = self.root
        for key in keys:
            child = level.get(key)
            if child is MISSING:
                if not create:
                    return None
                child = WeakKeyLevel(self.weak_keys)
                level[key] = child
            level = child
        return level

    def leaf(self, path: Tuple[Any, ...], create: bool = True) -> Tuple[Optional[WeakKeyLevel], Any]:
        """Return (final level, final key) for a full key path."""
        return self._walk(path[:-1], create), path[-1]

    def lookup(self, path: Tuple[Any, ...]) -> Any:
        level, key = self.leaf(path, create=False)
        if level is None:
            return MISSING
        return level.get(key)

    def store(self, path: Tuple[Any, ...], value: Any) -> None:
        level, key = self.leaf(path)
        level[key] = value

    def remove(self, prefix: Tuple[Any, ...]) -> bool:
        """Drop the leaf or subtree under `prefix`. False when nothing matched."""
        level = self._walk(prefix[:-1], create=False)
        if level is None:
            return False
        return level.pop(prefix[-1]) is not MISSING

    def clear(self) -> None:
        self.root = WeakKeyLevel(self.weak_keys)

    def count_entries(self) -> int:
        return self._count(self.root, self.depth)

    def _count(self, level: WeakKeyLevel, remaining: int) -> int:
        if remaining == 1:
            return len(level)
        return sum(self._count(child, remaining - 1) for child in level.values())
