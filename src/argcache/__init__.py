"""
argcache — memoize fixed-arity getters keyed by their arguments
Nested weak-keyed store, prefix invalidation, call hooks
"""

from .cache import ArgumentCache, cached
from .config import CacheConfig, load_config
from .hooks import HookRegistry
from .key_order import InvalidKeySpec, KeyOrder

__all__ = [
    'ArgumentCache',
    'cached',
    'CacheConfig',
    'load_config',
    'HookRegistry',
    'InvalidKeySpec',
    'KeyOrder',
]
