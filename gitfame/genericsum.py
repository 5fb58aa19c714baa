"""Small generic helpers over ordered, comparable and numeric values."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable, Iterator, Mapping, Sequence
from itertools import combinations_with_replacement
from typing import Any, TypeVar

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")

_DONE = object()


def minimum(a: T, b: T) -> T:
    """Return the smaller of two values, preferring ``b`` when they are equal."""
    return a if a < b else b  # type: ignore[operator]


def sort_slice(s: list[T]) -> None:
    """Sort a list in place in ascending order."""
    s.sort()  # type: ignore[call-arg]


def maps_equal(a: Mapping[K, V], b: Mapping[K, V]) -> bool:
    """Return True when both mappings hold the same keys with equal values."""

    def _contained(x: Mapping[K, V], y: Mapping[K, V]) -> bool:
        return all(key in y and y[key] == value for key, value in x.items())

    return _contained(a, b) and _contained(b, a)


def slice_contains(s: Iterable[V], v: V) -> bool:
    """Return True when ``v`` is equal to some element of ``s``."""
    return any(item == v for item in s)


def merge_iterables(*args: Iterable[T]) -> Iterator[T]:
    """Yield the items of all iterables as they are produced, concurrently.

    Each source is drained by its own thread; items from one source keep
    their relative order, while items of different sources interleave.
    """
    out: queue.Queue[Any] = queue.Queue(maxsize=1)

    def _pump(source: Iterable[T]) -> None:
        try:
            for item in source:
                out.put(item)
        finally:
            out.put(_DONE)

    for source in args:
        threading.Thread(target=_pump, args=(source,), daemon=True).start()

    remaining = len(args)
    while remaining:
        item = out.get()
        if item is _DONE:
            remaining -= 1
            continue
        yield item


def is_hermitian_matrix(m: Sequence[Sequence[Any]]) -> bool:
    """Return True when the square matrix equals its conjugate transpose.

    For real numbers this is plain symmetry.
    """
    n = len(m)
    return all(
        m[i][j] == m[j][i].conjugate()
        for i, j in combinations_with_replacement(range(n), 2)
    )