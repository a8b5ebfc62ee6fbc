"""
Order-preserving fan-out over a thread pool.

numpy and scikit-learn release the GIL inside their linear algebra and
clustering kernels, so threads give real parallelism for this workload.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def ordered_map(func: Callable[[T], R], items: Sequence[T], n_workers: int = 1) -> List[R]:
    """
    Apply *func* to every item and return results in input order.

    Each result is written into a pre-sized slot by position, so the output
    never depends on completion order. With ``n_workers <= 1`` (or a single
    item) everything runs in the calling thread. The first exception raised
    by *func* propagates; callers isolate per-item failures inside *func*.
    """
    if n_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    results: List[R] = [None] * len(items)  # type: ignore[list-item]
    with ThreadPoolExecutor(max_workers=min(n_workers, len(items))) as executor:
        futures = {executor.submit(func, item): i for i, item in enumerate(items)}
        for future, i in futures.items():
            results[i] = future.result()
    return results
