from __future__ import annotations
import csv
import datetime
import html
import json
import logging
from pathlib import Path
from typing import List, Sequence

from .analytics import AnalysisReport
from .keycodes import key_name
from .models import KeystrokeEvent
from .settings import APP_DIR
from .storage import EventStore

logger = logging.getLogger(__name__)

REPORTS_DIR = APP_DIR / "reports"

EXPORT_FORMATS = ("csv", "json")


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _fmt_ts(ts_ms: int) -> str:
    dt = datetime.datetime.fromtimestamp(ts_ms / 1000, tz=datetime.timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_analysis(report: AnalysisReport, top: int = 10, detailed: bool = False) -> str:
    freq, timing = report.frequency, report.timing
    lines: List[str] = ["=== KeyLens Analysis ===", ""]
    lines.append(f"Total events:     {report.total_events}")
    lines.append(f"Typing segments:  {report.segment_count} (gaps > {report.config.max_gap_ms}ms split)")
    lines.append(f"Analyzed events:  {report.analyzed_events}")
    lines.append("")
    lines.append(f"Total key presses: {freq.total_presses}")

    lines.append("")
    lines.append(f"--- Top {top} Keys ---")
    for i, k in enumerate(freq.top_keys(top), 1):
        code = f" (0x{k.key_code:02X})" if detailed else ""
        lines.append(f"{i:2}. {k.key_name:15}{code} {k.count:>8} ({k.percentage:.2f}%)")

    lines.append("")
    lines.append(f"--- Top {top} Bigrams ---")
    for i, b in enumerate(freq.top_bigrams(top), 1):
        code = f" (0x{b.first_key:02X}->0x{b.second_key:02X})" if detailed else ""
        lines.append(f"{i:2}. {b.display:25}{code} {b.count:>8} ({b.percentage:.2f}%)")

    lines.append("")
    lines.append(f"--- Top {top} Trigrams ---")
    for i, t in enumerate(freq.top_trigrams(top), 1):
        code = " (" + "->".join(f"0x{k:02X}" for k in t.keys) + ")" if detailed else ""
        lines.append(f"{i:2}. {t.display:35}{code} {t.count:>8} ({t.percentage:.2f}%)")

    ik = timing.overall_inter_key
    lines.append("")
    lines.append("--- Inter-Key Timing ---")
    lines.append(f"Samples:    {ik.count}")
    lines.append(f"Mean:       {ik.mean_ms:.1f}ms")
    lines.append(f"Median:     {ik.median_ms}ms")
    lines.append(f"P90:        {ik.p90_ms}ms")
    lines.append(f"P95:        {ik.p95_ms}ms")
    lines.append(f"P99:        {ik.p99_ms}ms")

    if detailed and timing.per_key_inter_key:
        lines.append("")
        lines.append(f"--- Top {top} Key-Pair Timings ---")
        for i, p in enumerate(timing.top_inter_key_pairs(top), 1):
            lines.append(f"{i:2}. {p.display:25} mean={p.mean_ms:.1f}ms median={p.median_ms}ms "
                         f"p95={p.p95_ms}ms (n={p.sample_count})")

    lines.append("")
    lines.append(f"--- Top {top} Hold Durations ---")
    for i, h in enumerate(timing.top_hold_durations(top), 1):
        lines.append(f"{i:2}. {h.key_name:15} mean={h.mean_ms:.1f}ms median={h.median_ms}ms "
                     f"p95={h.p95_ms}ms (n={h.sample_count})")

    if detailed:
        cfg = report.config
        lines.append("")
        lines.append("--- Filter Config ---")
        lines.append(f"Max gap:    {cfg.max_gap_ms}ms")
        lines.append(f"Min hold:   {cfg.min_hold_ms}ms")
        lines.append(f"Max hold:   {cfg.max_hold_ms}ms")
    return "\n".join(lines)


def format_stats(store: EventStore, top: int = 10) -> str:
    total = store.total_count()
    presses = store.press_count()
    lines: List[str] = ["=== KeyLens Statistics ===", ""]
    if total == 0:
        lines.append("No keystroke data recorded yet.")
        lines.append("Start a recording with: keylens record")
        return "\n".join(lines)

    lines.append(f"Total Events:     {total}")
    lines.append(f"Key Presses:      {presses}")
    lines.append(f"Key Releases:     {total - presses}")

    rng = store.date_range()
    if rng:
        start, end = rng
        days = max((end - start) // (24 * 60 * 60 * 1000), 1)
        lines.append("")
        lines.append("Date Range:")
        lines.append(f"  Start: {_fmt_ts(start)}")
        lines.append(f"  End:   {_fmt_ts(end)}")
        lines.append(f"  Duration: {days} days")
        lines.append("")
        lines.append(f"Average: {presses // days} presses/day")

    lines.append("")
    lines.append(f"--- Top {top} Keys ---")
    for i, (code, count) in enumerate(store.top_keys(top), 1):
        pct = (count / presses) * 100.0 if presses else 0.0
        lines.append(f"{i:2}. {key_name(code):15} {count:>8} ({pct:.1f}%)")

    lines.append("")
    lines.append("--- Top 5 Applications ---")
    for i, (app, count) in enumerate(store.top_applications(5), 1):
        short = app.split(".")[-1] or app
        pct = (count / presses) * 100.0 if presses else 0.0
        lines.append(f"{i:2}. {short:25} {count:>8} ({pct:.1f}%)")
    return "\n".join(lines)


def _report_stem() -> str:
    return "analysis-" + _utc_now().strftime("%Y%m%dT%H%M%SZ")


def write_json(report: AnalysisReport, top: int = 10) -> Path:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    path = REPORTS_DIR / f"{_report_stem()}.json"
    data = report.to_dict(top)
    data["generated_at"] = _utc_now().isoformat()
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info("Wrote JSON report %s", path)
    return path


def _table(title: str, headers: Sequence[str], rows: Sequence[Sequence]) -> str:
    head = "".join(f"<th>{html.escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(str(c))}</td>" for c in row) + "</tr>"
        for row in rows
    )
    return f"<h2>{html.escape(title)}</h2><table><tr>{head}</tr>{body}</table>"


def write_html(report: AnalysisReport, top: int = 10) -> Path:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    path = REPORTS_DIR / f"{_report_stem()}.html"
    freq, timing = report.frequency, report.timing
    ik = timing.overall_inter_key
    parts = [
        _table("Overview", ["Events", "Segments", "Presses", "Inter-key samples"],
               [[report.total_events, report.segment_count, freq.total_presses, ik.count]]),
        _table("Top keys", ["Key", "Count", "%"],
               [[k.key_name, k.count, f"{k.percentage:.2f}"] for k in freq.top_keys(top)]),
        _table("Top bigrams", ["Bigram", "Count", "%"],
               [[b.display, b.count, f"{b.percentage:.2f}"] for b in freq.top_bigrams(top)]),
        _table("Top trigrams", ["Trigram", "Count", "%"],
               [[t.display, t.count, f"{t.percentage:.2f}"] for t in freq.top_trigrams(top)]),
        _table("Inter-key timing (ms)", ["Mean", "Median", "P90", "P95", "P99"],
               [[f"{ik.mean_ms:.1f}", ik.median_ms, ik.p90_ms, ik.p95_ms, ik.p99_ms]]),
        _table("Key-pair timing (ms)", ["Pair", "n", "Mean", "Median", "P95"],
               [[p.display, p.sample_count, f"{p.mean_ms:.1f}", p.median_ms, p.p95_ms]
                for p in timing.top_inter_key_pairs(top)]),
        _table("Hold durations (ms)", ["Key", "n", "Mean", "Median", "P95"],
               [[h.key_name, h.sample_count, f"{h.mean_ms:.1f}", h.median_ms, h.p95_ms]
                for h in timing.top_hold_durations(top)]),
    ]
    doc = (
        "<!DOCTYPE html><html><head><meta charset='utf-8'><title>KeyLens report</title>"
        "<style>body{font-family:sans-serif;margin:2em}table{border-collapse:collapse;margin-bottom:1em}"
        "td,th{border:1px solid #ccc;padding:4px 8px;text-align:left}</style></head><body>"
        "<h1>KeyLens report</h1>" + "".join(parts) + "</body></html>"
    )
    path.write_text(doc, encoding="utf-8")
    logger.info("Wrote HTML report %s", path)
    return path


def export_events(events: Sequence[KeystrokeEvent], path: Path, fmt: str = "csv") -> Path:
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown format: {fmt}. Use 'csv' or 'json'.")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "csv":
        with path.open("w", newline="", encoding="utf-8") as fh:
            w = csv.writer(fh)
            w.writerow(["timestamp", "key_code", "key_name", "event_type", "modifiers", "application"])
            for e in events:
                w.writerow([
                    e.timestamp,
                    e.key_code,
                    key_name(e.key_code),
                    e.event_type.as_str(),
                    ";".join(str(m) for m in e.modifiers),
                    e.application.replace(",", ";"),
                ])
    else:
        date_range = None
        if events:
            date_range = {"start": min(e.timestamp for e in events),
                          "end": max(e.timestamp for e in events)}
        data = {
            "metadata": {
                "export_date": _utc_now().isoformat(),
                "total_events": len(events),
                "date_range": date_range,
            },
            "events": [dict(e.to_dict(), key_name=key_name(e.key_code)) for e in events],
        }
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    logger.info("Exported %d events to %s", len(events), path)
    return path
