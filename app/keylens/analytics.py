from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Sequence

from .filters import FilterConfig, flatten_segments
from .frequency import FrequencyAnalysis
from .models import KeystrokeEvent
from .storage import EventStore
from .timing import TimingAnalysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    total_events: int
    segment_count: int
    analyzed_events: int
    frequency: FrequencyAnalysis
    timing: TimingAnalysis

    @property
    def config(self) -> FilterConfig:
        return self.timing.filter_config

    def to_dict(self, top: int = 10) -> Dict[str, Any]:
        ik = self.timing.overall_inter_key
        return {
            "total_events": self.total_events,
            "segments": self.segment_count,
            "analyzed_events": self.analyzed_events,
            "total_presses": self.frequency.total_presses,
            "filter_config": {
                "max_gap_ms": self.config.max_gap_ms,
                "min_hold_ms": self.config.min_hold_ms,
                "max_hold_ms": self.config.max_hold_ms,
            },
            "top_keys": [
                {"key_code": k.key_code, "key_name": k.key_name, "count": k.count,
                 "percentage": round(k.percentage, 4)}
                for k in self.frequency.top_keys(top)
            ],
            "top_bigrams": [
                {"keys": [b.first_key, b.second_key], "display": b.display, "count": b.count,
                 "percentage": round(b.percentage, 4)}
                for b in self.frequency.top_bigrams(top)
            ],
            "top_trigrams": [
                {"keys": list(t.keys), "display": t.display, "count": t.count,
                 "percentage": round(t.percentage, 4)}
                for t in self.frequency.top_trigrams(top)
            ],
            "inter_key": {
                "count": ik.count,
                "mean_ms": round(ik.mean_ms, 3),
                "median_ms": ik.median_ms,
                "p90_ms": ik.p90_ms,
                "p95_ms": ik.p95_ms,
                "p99_ms": ik.p99_ms,
            },
            "key_pairs": [
                {"keys": [p.from_key, p.to_key], "display": p.display, "samples": p.sample_count,
                 "mean_ms": round(p.mean_ms, 3), "median_ms": p.median_ms, "p95_ms": p.p95_ms}
                for p in self.timing.top_inter_key_pairs(top)
            ],
            "hold_durations": [
                {"key_code": h.key_code, "key_name": h.key_name, "samples": h.sample_count,
                 "mean_ms": round(h.mean_ms, 3), "median_ms": h.median_ms, "p95_ms": h.p95_ms}
                for h in self.timing.top_hold_durations(top)
            ],
        }


def analyze(events: Sequence[KeystrokeEvent], config: FilterConfig = FilterConfig()) -> AnalysisReport:
    """Segment by idle gaps, then run frequency and timing analysis on the rest.

    The caller hands over a snapshot; nothing here touches the store or the
    recorder, so a long history can be analyzed off the capture path.
    """
    segments = config.segment_by_gap(events)
    flat = flatten_segments(segments)
    report = AnalysisReport(
        total_events=len(events),
        segment_count=len(segments),
        analyzed_events=len(flat),
        frequency=FrequencyAnalysis.from_events(flat),
        timing=TimingAnalysis.from_events(flat, config),
    )
    logger.info("Analyzed %d events in %d typing segments", report.total_events, report.segment_count)
    return report


def analyze_store(db_path: str, config: FilterConfig = FilterConfig()) -> AnalysisReport:
    """Read the full history through a fresh connection and analyze it.

    Opens its own store so it can run on a worker thread while the recorder
    keeps writing through another connection.
    """
    with EventStore(db_path) as store:
        events = store.all_events()
    return analyze(events, config)
