#!/usr/bin/env python3
"""
Benchmark harness: time repeated lookups with and without a cache

Usage:
    python -m argcache.benchmark [--delay 0.0005] [--counts 1 10 100 1000]
"""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .cache import ArgumentCache

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkResult:
    name: str
    count: int
    seconds: float

    @property
    def per_call_us(self) -> float:
        return (self.seconds / self.count * 1_000_000) if self.count else 0.0


def measure_run_time(func: Callable[[Any], Any], arg: Any, count: int) -> float:
    start = time.perf_counter()
    for _ in range(count):
        func(arg)
    return time.perf_counter() - start


def benchmark(name: str, func: Callable[[Any], Any], arg: Any, count: int) -> BenchmarkResult:
    seconds = measure_run_time(func, arg, count)
    logger.debug(f"{count} runs of {name} took {seconds:.6f}s")
    return BenchmarkResult(name=name, count=count, seconds=seconds)


def compare(
    funcs: Dict[str, Callable[[Any], Any]],
    arg: Any,
    counts: Iterable[int],
    reset: Sequence[Callable[[], None]] = (),
) -> List[BenchmarkResult]:
    """
    Run every function at every count.

    `reset` callables (typically cache.invalidate_all) run before each
    round so every round starts cold.
    """
    results: List[BenchmarkResult] = []
    for count in counts:
        for clear in reset:
            clear()
        for name, func in funcs.items():
            results.append(benchmark(name, func, arg, count))
    return results


def format_report(results: Sequence[BenchmarkResult]) -> str:
    lines = ["=" * 60, "ARGCACHE BENCHMARK REPORT", "=" * 60]
    for result in results:
        lines.append(
            f"{result.count} runs of {result.name} takes {result.seconds:.6f} sec "
            f"({result.per_call_us:.2f} us/call)"
        )
    lines.append("=" * 60)
    return "\n".join(lines)


def print_report(results: Sequence[BenchmarkResult]) -> None:
    print("\n" + format_report(results) + "\n")


def slow_lookup(delay: float) -> Callable[[int], str]:
    """A stand-in for an expensive lookup: allocate, read, release."""

    def lookup(item_id: int) -> str:
        time.sleep(delay)
        return f"item-{item_id:08x}"

    return lookup


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Compare a slow lookup with its cached version")
    parser.add_argument("--delay", type=float, default=0.0005, help="seconds per uncached lookup")
    parser.add_argument("--counts", type=int, nargs="+", default=[1, 10, 100, 1000])
    args = parser.parse_args(argv)

    lookup = slow_lookup(args.delay)
    cache = ArgumentCache(lookup, 1, name="slow_lookup")
    results = compare(
        {"slow_lookup": lookup, "ArgumentCache.get": cache.get},
        0x72617463,
        args.counts,
        reset=[cache.invalidate_all],
    )
    print_report(results)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
