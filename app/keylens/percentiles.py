from __future__ import annotations
from typing import Iterable, List, NamedTuple, Optional


class Percentiles(NamedTuple):
    p50: int
    p90: int
    p95: int
    p99: int


def percentile(sorted_values: List[int], p: float) -> Optional[int]:
    """Nearest-rank percentile over already sorted values.

    Returns None when there is no data so callers can tell it apart
    from a real zero sample.
    """
    if not sorted_values:
        return None
    n = len(sorted_values)
    idx = int((n - 1) * p)
    return sorted_values[min(idx, n - 1)]


def percentiles(values: Iterable[int]) -> Optional[Percentiles]:
    data = sorted(values)
    if not data:
        return None
    return Percentiles(
        p50=percentile(data, 0.50),
        p90=percentile(data, 0.90),
        p95=percentile(data, 0.95),
        p99=percentile(data, 0.99),
    )


def mean(values: List[int]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)
