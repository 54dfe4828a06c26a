from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .filters import FilterConfig
from .keycodes import key_name
from .models import EventType, KeystrokeEvent
from .percentiles import mean, percentiles

logger = logging.getLogger(__name__)

# Pairs with fewer samples than this are not reported.
MIN_PAIR_SAMPLES = 3


@dataclass(frozen=True)
class InterKeyStats:
    count: int = 0
    mean_ms: float = 0.0
    median_ms: int = 0
    p90_ms: int = 0
    p95_ms: int = 0
    p99_ms: int = 0
    intervals_ms: Tuple[int, ...] = field(default_factory=tuple, repr=False)


@dataclass(frozen=True)
class InterKeyInterval:
    from_key: int
    to_key: int
    display: str
    intervals_ms: Tuple[int, ...]
    mean_ms: float
    median_ms: int
    p95_ms: int

    @property
    def sample_count(self) -> int:
        return len(self.intervals_ms)


@dataclass(frozen=True)
class HoldDuration:
    key_code: int
    key_name: str
    durations_ms: Tuple[int, ...]
    mean_ms: float
    median_ms: int
    p95_ms: int
    sample_count: int


@dataclass(frozen=True)
class TimingAnalysis:
    overall_inter_key: InterKeyStats
    per_key_inter_key: Tuple[InterKeyInterval, ...]
    hold_durations: Tuple[HoldDuration, ...]
    filter_config: FilterConfig

    @staticmethod
    def from_events(events: Sequence[KeystrokeEvent], config: FilterConfig = FilterConfig()) -> "TimingAnalysis":
        presses = [e for e in events if e.is_press]
        pair_intervals = _valid_press_intervals(presses, config)
        analysis = TimingAnalysis(
            overall_inter_key=_overall_inter_key(pair_intervals),
            per_key_inter_key=tuple(_per_key_inter_key(pair_intervals)),
            hold_durations=tuple(_hold_durations(events, config)),
            filter_config=config,
        )
        logger.debug("Timing analysis: %d intervals, %d pairs, %d keys with holds",
                     analysis.overall_inter_key.count, len(analysis.per_key_inter_key),
                     len(analysis.hold_durations))
        return analysis

    def top_inter_key_pairs(self, n: int) -> List[InterKeyInterval]:
        return list(self.per_key_inter_key[:max(n, 0)])

    def top_hold_durations(self, n: int) -> List[HoldDuration]:
        return list(self.hold_durations[:max(n, 0)])


def _valid_press_intervals(presses: List[KeystrokeEvent], config: FilterConfig) -> List[Tuple[int, int, int]]:
    """(from_key, to_key, interval) for consecutive presses with a valid gap."""
    out = []
    for a, b in zip(presses, presses[1:]):
        interval = b.timestamp - a.timestamp
        if config.is_valid_interval(interval):
            out.append((a.key_code, b.key_code, interval))
    return out


def _overall_inter_key(pair_intervals: List[Tuple[int, int, int]]) -> InterKeyStats:
    intervals = [iv for _, _, iv in pair_intervals]
    pct = percentiles(intervals)
    if pct is None:
        return InterKeyStats()
    return InterKeyStats(
        count=len(intervals),
        mean_ms=mean(intervals),
        median_ms=pct.p50,
        p90_ms=pct.p90,
        p95_ms=pct.p95,
        p99_ms=pct.p99,
        intervals_ms=tuple(intervals),
    )


def _per_key_inter_key(pair_intervals: List[Tuple[int, int, int]]) -> List[InterKeyInterval]:
    grouped: Dict[Tuple[int, int], List[int]] = {}
    for from_key, to_key, interval in pair_intervals:
        grouped.setdefault((from_key, to_key), []).append(interval)

    results = []
    for (from_key, to_key), intervals in grouped.items():
        if len(intervals) < MIN_PAIR_SAMPLES:
            continue
        pct = percentiles(intervals)
        results.append(InterKeyInterval(
            from_key=from_key,
            to_key=to_key,
            display=f"{key_name(from_key)} -> {key_name(to_key)}",
            intervals_ms=tuple(sorted(intervals)),
            mean_ms=mean(intervals),
            median_ms=pct.p50,
            p95_ms=pct.p95,
        ))

    results.sort(key=lambda r: (-r.sample_count, r.from_key, r.to_key))
    return results


def _hold_durations(events: Sequence[KeystrokeEvent], config: FilterConfig) -> List[HoldDuration]:
    # Per key: LIFO stack of pending press timestamps. Empty stack == idle.
    pending: Dict[int, List[int]] = {}
    holds: Dict[int, List[int]] = {}

    for e in events:
        if e.event_type is EventType.PRESS:
            pending.setdefault(e.key_code, []).append(e.timestamp)
            continue
        stack = pending.get(e.key_code)
        if not stack:
            continue  # release without a press
        duration = e.timestamp - stack.pop()
        if config.is_valid_hold_duration(duration):
            holds.setdefault(e.key_code, []).append(duration)

    results = []
    for code, durations in holds.items():
        pct = percentiles(durations)
        results.append(HoldDuration(
            key_code=code,
            key_name=key_name(code),
            durations_ms=tuple(sorted(durations)),
            mean_ms=mean(durations),
            median_ms=pct.p50,
            p95_ms=pct.p95,
            sample_count=len(durations),
        ))

    results.sort(key=lambda h: (-h.sample_count, h.key_code))
    return results
