from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .keycodes import key_name
from .models import KeystrokeEvent

logger = logging.getLogger(__name__)

# Fixed adjacency window for bigrams/trigrams. Deliberately independent of
# FilterConfig.max_gap_ms: changing the segmentation threshold does not
# change which press pairs count as n-grams.
ADJACENCY_WINDOW_MS = 5000


@dataclass(frozen=True)
class KeyCount:
    key_code: int
    key_name: str
    count: int
    percentage: float


@dataclass(frozen=True)
class BigramCount:
    first_key: int
    second_key: int
    display: str
    count: int
    percentage: float


@dataclass(frozen=True)
class TrigramCount:
    keys: Tuple[int, int, int]
    display: str
    count: int
    percentage: float


def _pct(count: int, total: int) -> float:
    return (count / total) * 100.0 if total > 0 else 0.0


def _ranked(counts: Dict) -> List:
    # Count descending, then key ascending so ties come out the same every run.
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


@dataclass(frozen=True)
class FrequencyAnalysis:
    total_presses: int
    key_frequencies: Tuple[KeyCount, ...]
    bigram_frequencies: Tuple[BigramCount, ...]
    trigram_frequencies: Tuple[TrigramCount, ...]

    @staticmethod
    def from_events(events: Sequence[KeystrokeEvent]) -> "FrequencyAnalysis":
        presses = [e for e in events if e.is_press]
        total = len(presses)
        analysis = FrequencyAnalysis(
            total_presses=total,
            key_frequencies=tuple(_key_frequencies(presses, total)),
            bigram_frequencies=tuple(_bigram_frequencies(presses)),
            trigram_frequencies=tuple(_trigram_frequencies(presses)),
        )
        logger.debug("Frequency analysis: %d presses, %d keys, %d bigrams, %d trigrams",
                     total, len(analysis.key_frequencies),
                     len(analysis.bigram_frequencies), len(analysis.trigram_frequencies))
        return analysis

    def top_keys(self, n: int) -> List[KeyCount]:
        return list(self.key_frequencies[:max(n, 0)])

    def top_bigrams(self, n: int) -> List[BigramCount]:
        return list(self.bigram_frequencies[:max(n, 0)])

    def top_trigrams(self, n: int) -> List[TrigramCount]:
        return list(self.trigram_frequencies[:max(n, 0)])


def _key_frequencies(presses: List[KeystrokeEvent], total: int) -> List[KeyCount]:
    counts: Dict[int, int] = {}
    for e in presses:
        counts[e.key_code] = counts.get(e.key_code, 0) + 1
    return [
        KeyCount(key_code=code, key_name=key_name(code), count=count, percentage=_pct(count, total))
        for code, count in _ranked(counts)
    ]


def _bigram_frequencies(presses: List[KeystrokeEvent]) -> List[BigramCount]:
    counts: Dict[Tuple[int, int], int] = {}
    for a, b in zip(presses, presses[1:]):
        if b.timestamp - a.timestamp < ADJACENCY_WINDOW_MS:
            pair = (a.key_code, b.key_code)
            counts[pair] = counts.get(pair, 0) + 1

    total = sum(counts.values())
    return [
        BigramCount(
            first_key=first,
            second_key=second,
            display=f"{key_name(first)} -> {key_name(second)}",
            count=count,
            percentage=_pct(count, total),
        )
        for (first, second), count in _ranked(counts)
    ]


def _trigram_frequencies(presses: List[KeystrokeEvent]) -> List[TrigramCount]:
    counts: Dict[Tuple[int, int, int], int] = {}
    for a, b, c in zip(presses, presses[1:], presses[2:]):
        if b.timestamp - a.timestamp < ADJACENCY_WINDOW_MS and c.timestamp - b.timestamp < ADJACENCY_WINDOW_MS:
            keys = (a.key_code, b.key_code, c.key_code)
            counts[keys] = counts.get(keys, 0) + 1

    total = sum(counts.values())
    return [
        TrigramCount(
            keys=keys,
            display=" -> ".join(key_name(k) for k in keys),
            count=count,
            percentage=_pct(count, total),
        )
        for keys, count in _ranked(counts)
    ]
