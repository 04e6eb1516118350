"""
Key Ordering — which call arguments key the cache, and in what nesting order

Implements:
- NULL sentinel substituted for absent / None arguments
- KeyOrder.create(arity, key_order) → validated positions
- key_path(args) → key tuple in nesting order
- prefix(keys) → normalised invalidation prefix
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class InvalidKeySpec(ValueError):
    """Key order references an argument position the getter does not have."""


class _NullKey:
    # no __weakref__ slot: the sentinel always lands in the strong bucket
    __slots__ = ()

    def __repr__(self) -> str:
        return "NULL"


NULL = _NullKey()


def as_key(value: Any) -> Any:
    return NULL if value is None else value


@dataclass(frozen=True)
class KeyOrder:
    """
    Positions of the getter's arguments used as cache keys.

    Design:
    - positions are 0-based, outermost level first
    - duplicates nest the same argument twice, omitted positions never
      distinguish entries
    - an empty order keys everything on a single NULL slot
    """

    arity: int
    positions: Tuple[int, ...]

    @classmethod
    def create(
        cls,
        arity: int,
        key_order: Optional[Iterable[int]] = None,
        strict: bool = True,
    ) -> "KeyOrder":
        if not isinstance(arity, int) or isinstance(arity, bool) or arity < 0:
            raise InvalidKeySpec(f"arity must be a non-negative integer, got {arity!r}")

        if key_order is None:
            return cls(arity=arity, positions=tuple(range(arity)))

        positions = tuple(key_order)
        for position in positions:
            if not isinstance(position, int) or isinstance(position, bool):
                raise InvalidKeySpec(f"key position must be an integer, got {position!r}")
            if 0 <= position < arity:
                continue
            if strict:
                raise InvalidKeySpec(
                    f"key position {position} out of range for arity {arity} "
                    f"(valid: 0..{arity - 1})"
                )
            logger.warning(f"Key position {position} out of range for arity {arity}, always keyed as NULL")

        return cls(arity=arity, positions=positions)

    @property
    def depth(self) -> int:
        return max(len(self.positions), 1)

    def key_path(self, args: Sequence[Any]) -> Tuple[Any, ...]:
        if not self.positions:
            return (NULL,)
        size = len(args)
        return tuple(
            as_key(args[position]) if 0 <= position < size else NULL
            for position in self.positions
        )

    def prefix(self, keys: Sequence[Any]) -> Tuple[Any, ...]:
        if len(keys) > self.depth:
            raise TypeError(
                f"invalidate() takes at most {self.depth} keys ({len(keys)} given)"
            )
        if not keys:
            return (NULL,)
        return tuple(as_key(key) for key in keys)
