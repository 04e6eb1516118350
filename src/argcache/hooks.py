"""
Hook Registry — route existing functions through argument caches

Replaces named attributes of a namespace (module, class, object) with
wrappers that serve calls from an ArgumentCache:

- hook_getter: conversion-style lookups, `f(x)` → cache.get(x)
- hook_constant: zero-argument getters computed once
- hook_getter_and_setters: a getter plus setters that keep the cache in
  step with writes (setter args = getter args followed by the new value)
- hook_context_getter: zero-argument getters whose answer depends on the
  running task or thread, cached per context
- hook_editable_context_getter: the same, plus invalidators that drop the
  current context's value before they run

restore() puts every original attribute back.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .cache import ArgumentCache
from .config import CacheConfig

logger = logging.getLogger(__name__)


def current_context() -> Any:
    """The running asyncio task, or the current thread outside an event loop."""
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    return task if task is not None else threading.current_thread()


@dataclass
class HookRecord:
    namespace: Any
    name: str
    label: str
    original: Callable[..., Any]
    cache: ArgumentCache
    companions: List[Tuple[str, Callable[..., Any]]] = field(default_factory=list)


class HookRegistry:
    """Table of hooked functions and the caches bound to them."""

    def __init__(self, config: Optional[CacheConfig] = None) -> None:
        self._config = config
        # keyed by (id(namespace), name); records keep the namespace alive
        self._records: Dict[Tuple[int, str], HookRecord] = {}
        self._by_function: Dict[int, HookRecord] = {}

    @staticmethod
    def _label(namespace: Any, name: str) -> str:
        owner = getattr(namespace, "__name__", None) or type(namespace).__name__
        return f"{owner}.{name}"

    @staticmethod
    def _callable_attr(namespace: Any, name: str) -> Callable[..., Any]:
        original = getattr(namespace, name)  # AttributeError for unknown names
        if not callable(original):
            raise TypeError(f"{HookRegistry._label(namespace, name)} is not callable")
        return original

    def _install(
        self,
        namespace: Any,
        name: str,
        getter: Optional[Callable[..., Any]],
        arity: int,
        key_order: Tuple[int, ...],
        call: Callable[[ArgumentCache], Callable[..., Any]],
    ) -> HookRecord:
        key = (id(namespace), name)
        label = self._label(namespace, name)
        if key in self._records:
            raise ValueError(f"{label} is already hooked")
        original = self._callable_attr(namespace, name)

        cache = ArgumentCache(getter or original, arity, key_order or None, config=self._config, name=label)
        hooked = functools.wraps(original)(call(cache))

        setattr(namespace, name, hooked)
        record = HookRecord(namespace=namespace, name=name, label=label, original=original, cache=cache)
        self._records[key] = record
        self._by_function[id(original)] = record
        self._by_function[id(hooked)] = record
        return record

    def _wrap_companions(
        self,
        record: HookRecord,
        originals: List[Tuple[str, Callable[..., Any]]],
        wrap: Callable[[Callable[..., Any]], Callable[..., Any]],
    ) -> None:
        for companion_name, original in originals:
            setattr(record.namespace, companion_name, functools.wraps(original)(wrap(original)))
            record.companions.append((companion_name, original))
            logger.debug(f"Hooked {self._label(record.namespace, companion_name)} → {record.label}")

    def hook_getter(self, namespace: Any, name: str, arity: int, *key_order: int) -> ArgumentCache:
        """Serve `namespace.name` from a cache of the given arity."""

        def call(cache: ArgumentCache) -> Callable[..., Any]:
            def cached_getter(*args: Any) -> Any:
                return cache.get(*args)

            return cached_getter

        record = self._install(namespace, name, None, arity, key_order, call)
        logger.debug(f"Hooked getter {record.label} (arity={arity})")
        return record.cache

    def hook_constant(self, namespace: Any, name: str) -> ArgumentCache:
        """Serve a zero-argument getter from a single cached slot."""
        return self.hook_getter(namespace, name, 0)

    def hook_getter_and_setters(
        self,
        namespace: Any,
        arity: int,
        getter_name: str,
        *setter_names: str,
    ) -> ArgumentCache:
        """
        Hook a getter and the setters that change what it returns.

        A hooked setter stores its first `arity + 1` arguments (the getter's
        arguments followed by the new value) and then calls the original.
        """
        originals = [(setter_name, self._callable_attr(namespace, setter_name)) for setter_name in setter_names]
        cache = self.hook_getter(namespace, getter_name, arity)

        def wrap(original: Callable[..., Any]) -> Callable[..., Any]:
            def caching_setter(*args: Any) -> Any:
                if len(args) > arity:
                    cache.set(*args[: arity + 1])
                return original(*args)

            return caching_setter

        self._wrap_companions(self._records[(id(namespace), getter_name)], originals, wrap)
        return cache

    def hook_context_getter(
        self,
        namespace: Any,
        name: str,
        context: Callable[[], Any] = current_context,
    ) -> ArgumentCache:
        """
        Cache a zero-argument getter once per execution context.

        The cache is keyed on `context()`; tasks and threads are held weakly,
        so their entries go away with them.
        """
        original = self._callable_attr(namespace, name)

        def evaluate(_context: Any) -> Any:
            return original()

        def call(cache: ArgumentCache) -> Callable[..., Any]:
            def context_getter() -> Any:
                return cache.get(context())

            return context_getter

        record = self._install(namespace, name, evaluate, 1, (), call)
        logger.debug(f"Hooked context getter {record.label}")
        return record.cache

    def hook_editable_context_getter(
        self,
        namespace: Any,
        name: str,
        *invalidator_names: str,
        context: Callable[[], Any] = current_context,
    ) -> ArgumentCache:
        """Context getter whose invalidators forget the current context's value first."""
        originals = [(invalidator, self._callable_attr(namespace, invalidator)) for invalidator in invalidator_names]
        cache = self.hook_context_getter(namespace, name, context)

        def wrap(original: Callable[..., Any]) -> Callable[..., Any]:
            def invalidating_call(*args: Any, **kwargs: Any) -> Any:
                cache.invalidate(context())
                return original(*args, **kwargs)

            return invalidating_call

        self._wrap_companions(self._records[(id(namespace), name)], originals, wrap)
        return cache

    def cache_for(self, target: Union[str, Callable[..., Any]]) -> ArgumentCache:
        """Look up the cache by "owner.name" or by the original/hooked function."""
        if isinstance(target, str):
            matches = [record for record in self._records.values() if record.label == target]
            if len(matches) > 1:
                raise KeyError(f"{target!r} names {len(matches)} hooks; look up by function instead")
            record = matches[0] if matches else None
        else:
            record = self._by_function.get(id(target))
        if record is None:
            raise KeyError(f"no cache registered for {target!r}")
        return record.cache

    def invalidate_all(self) -> None:
        for record in self._records.values():
            record.cache.invalidate_all()

    def restore(self) -> int:
        """Put back every original function. Returns the number of getters restored."""
        restored = 0
        for record in self._records.values():
            setattr(record.namespace, record.name, record.original)
            for companion_name, original in record.companions:
                setattr(record.namespace, companion_name, original)
            restored += 1
            logger.debug(f"Restored {record.label}")

        self._records.clear()
        self._by_function.clear()
        return restored

    def __contains__(self, label: str) -> bool:
        return any(record.label == label for record in self._records.values())

    def __len__(self) -> int:
        return len(self._records)
