from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

from .models import KeystrokeEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterConfig:
    max_gap_ms: int = 5000
    min_hold_ms: int = 10
    max_hold_ms: int = 2000

    def is_valid_interval(self, interval_ms: int) -> bool:
        # Zero or negative gaps mean out-of-order input or a clock jump.
        return 0 < interval_ms < self.max_gap_ms

    def is_valid_hold_duration(self, duration_ms: int) -> bool:
        return self.min_hold_ms <= duration_ms <= self.max_hold_ms

    def segment_by_gap(self, events: Sequence[KeystrokeEvent]) -> List["Segment"]:
        return segment_by_gap(events, self.max_gap_ms)


@dataclass(frozen=True)
class Segment:
    """A [start, end) window over a shared, immutable tuple of events."""
    source: Tuple[KeystrokeEvent, ...] = field(repr=False, compare=False)
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self) -> Iterator[KeystrokeEvent]:
        for i in range(self.start, self.end):
            yield self.source[i]

    def __getitem__(self, i: int) -> KeystrokeEvent:
        if i < 0:
            i += len(self)
        if not 0 <= i < len(self):
            raise IndexError("segment index out of range")
        return self.source[self.start + i]

    @property
    def first_timestamp(self) -> int:
        return self.source[self.start].timestamp

    @property
    def last_timestamp(self) -> int:
        return self.source[self.end - 1].timestamp

    def duration_ms(self) -> int:
        return self.last_timestamp - self.first_timestamp


def segment_by_gap(events: Sequence[KeystrokeEvent], max_gap_ms: int) -> List[Segment]:
    """Split events into typing segments wherever the gap exceeds max_gap_ms.

    A gap exactly equal to max_gap_ms does not break a segment. The
    segments partition the input: lengths add up to len(events), in order.
    """
    source = tuple(events)
    if not source:
        return []

    segments: List[Segment] = []
    start = 0
    for i in range(1, len(source)):
        gap = source[i].timestamp - source[i - 1].timestamp
        if gap > max_gap_ms:
            segments.append(Segment(source, start, i))
            start = i
    segments.append(Segment(source, start, len(source)))

    logger.debug("Segmented %d events into %d segments (max gap %dms)",
                 len(source), len(segments), max_gap_ms)
    return segments


def flatten_segments(segments: Sequence[Segment]) -> List[KeystrokeEvent]:
    out: List[KeystrokeEvent] = []
    for seg in segments:
        out.extend(seg)
    return out
