#!/usr/bin/env python3
"""
Unit tests for the nested weak-keyed store
"""

import gc
from pathlib import Path
import sys

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from argcache.key_order import NULL
from argcache.store import MISSING, CacheStore, WeakKeyLevel, supports_weakref


class Token:
    pass


class TestWeakKeyLevel:
    """Bucket selection and mapping operations."""

    def test_supports_weakref(self):
        assert supports_weakref(Token())
        assert not supports_weakref(1)
        assert not supports_weakref("text")
        assert not supports_weakref((1, 2))
        assert not supports_weakref(NULL)

    def test_mixed_keys(self):
        level = WeakKeyLevel()
        token = Token()

        level[token] = "object"
        level[1] = "int"
        level[NULL] = "null"

        assert level.get(token) == "object"
        assert level.get(1) == "int"
        assert level.get(NULL) == "null"
        assert level.get("absent") is MISSING
        assert len(level) == 3
        assert sorted(level.values()) == ["int", "null", "object"]

    def test_pop(self):
        level = WeakKeyLevel()
        level["a"] = 1

        assert level.pop("a") == 1
        assert level.pop("a") is MISSING
        assert "a" not in level

    def test_weak_entry_collected(self):
        level = WeakKeyLevel()
        token = Token()
        level[token] = "value"

        del token
        gc.collect()

        assert len(level) == 0

    def test_strong_only_level(self):
        level = WeakKeyLevel(weak_keys=False)
        token = Token()
        level[token] = "value"

        del token
        gc.collect()

        assert len(level) == 1


class TestCacheStore:
    """Path walking, removal and counting."""

    @pytest.fixture
    def store(self):
        return CacheStore(depth=3)

    def test_store_and_lookup(self, store):
        store.store((1, 2, 3), "leaf")

        assert store.lookup((1, 2, 3)) == "leaf"
        assert store.lookup((1, 2, 4)) is MISSING
        assert store.lookup((9, 9, 9)) is MISSING

    def test_lookup_does_not_create_levels(self, store):
        store.lookup(("x", "y", "z"))
        assert len(store.root) == 0

    def test_leaf_creates_levels(self, store):
        level, key = store.leaf(("x", "y", "z"))

        assert key == "z"
        assert isinstance(level, WeakKeyLevel)
        assert "x" in store.root

    def test_remove_subtree(self, store):
        store.store((1, 1, 1), "a")
        store.store((1, 1, 2), "b")
        store.store((1, 2, 1), "c")
        store.store((2, 1, 1), "d")

        assert store.remove((1, 1)) is True
        assert store.count_entries() == 2
        assert store.remove((1,)) is True
        assert store.count_entries() == 1
        assert store.lookup((2, 1, 1)) == "d"

    def test_remove_missing(self, store):
        assert store.remove((1,)) is False
        assert store.remove((1, 2, 3)) is False

    def test_clear(self, store):
        store.store((1, 2, 3), "leaf")
        store.clear()

        assert store.count_entries() == 0
        assert store.lookup((1, 2, 3)) is MISSING

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            CacheStore(depth=0)
