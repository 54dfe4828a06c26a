from __future__ import annotations
import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .analytics import analyze
from .filters import FilterConfig
from .logging_conf import configure_logging
from .notify import Notifier, summarize
from .recorder import Recorder
from .reports import EXPORT_FORMATS, export_events, format_analysis, format_stats
from .settings import AppSettings
from .storage import EventStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keylens",
                                     description="Local keystroke timing recorder and typing-pattern analyzer")
    parser.add_argument("--config", type=Path, help="Settings file (default: app dir config.json)")
    parser.add_argument("--db", help="Event database path (overrides settings)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    rec = sub.add_parser("record", help="Capture keystroke timings into the database")
    rec.add_argument("--duration", type=int, default=0, help="Stop after N seconds (0 = until Ctrl+C)")

    sub.add_parser("stats", help="Show keystroke statistics")

    an = sub.add_parser("analyze", help="Analyze typing patterns")
    an.add_argument("-t", "--top", type=int, help="Number of top items to show")
    an.add_argument("--max-gap", type=int, help="Max gap in ms before a new typing segment starts")
    an.add_argument("--days", type=int, help="Only analyze the last N days")
    an.add_argument("-d", "--detailed", action="store_true", help="Show key codes, per-pair timing and filter config")
    an.add_argument("--json", action="store_true", help="Print the analysis as JSON")
    an.add_argument("--notify", action="store_true", help="Post a summary to the configured webhooks")

    ex = sub.add_parser("export", help="Export raw keystroke events")
    ex.add_argument("-f", "--format", default="csv", help="Output format: csv or json")
    ex.add_argument("-o", "--output", required=True, help="Output file path")

    sub.add_parser("dashboard", help="Open the dashboard window")
    return parser


def _open_store(db_path: str) -> Optional[EventStore]:
    if db_path != ":memory:" and not Path(db_path).exists():
        print(f"No database found at {db_path}", file=sys.stderr)
        print("Record some keystrokes first: keylens record", file=sys.stderr)
        return None
    return EventStore(db_path)


def run_record(settings: AppSettings, duration: int) -> int:
    store = EventStore(settings.db_path)
    rec = Recorder(store, flush_interval_sec=settings.recorder.flush_interval_sec,
                   batch_size=settings.recorder.batch_size,
                   buffer_size=settings.recorder.buffer_size)
    try:
        rec.start()
        print("Recording keystroke timings. Press Ctrl+C to stop.")
        started = time.monotonic()
        while duration <= 0 or time.monotonic() - started < duration:
            time.sleep(0.2)
    except KeyboardInterrupt:
        pass
    finally:
        rec.stop()
        store.close()
    print(f"Recorded {rec.written} events to {settings.db_path}")
    return 0


def run_stats(settings: AppSettings) -> int:
    store = _open_store(settings.db_path)
    if store is None:
        return 1
    with store:
        print(format_stats(store, settings.report.top_n))
    return 0


def run_analyze(settings: AppSettings, args: argparse.Namespace) -> int:
    store = _open_store(settings.db_path)
    if store is None:
        return 1
    with store:
        events = store.events_since(args.days) if args.days else store.all_events()
    if not events:
        print("No keystroke data recorded yet.", file=sys.stderr)
        return 1

    base = settings.filters.to_config()
    config = FilterConfig(
        max_gap_ms=args.max_gap if args.max_gap is not None else base.max_gap_ms,
        min_hold_ms=base.min_hold_ms,
        max_hold_ms=base.max_hold_ms,
    )
    top = args.top if args.top is not None else settings.report.top_n
    report = analyze(events, config)

    if args.json:
        print(json.dumps(report.to_dict(top), indent=2))
    else:
        print(format_analysis(report, top=top, detailed=args.detailed or settings.report.detailed))

    if args.notify:
        notifier = Notifier.from_prefs(settings.notifications)
        if notifier.enabled:
            notifier.post_summary(summarize(report))
        else:
            logger.warning("--notify given but no notification channel is configured")
    return 0


def run_export(settings: AppSettings, fmt: str, output: str) -> int:
    if fmt.lower() not in EXPORT_FORMATS:
        print(f"Unknown format: {fmt}. Use 'csv' or 'json'.", file=sys.stderr)
        return 2
    store = _open_store(settings.db_path)
    if store is None:
        return 1
    with store:
        events = store.all_events()
    path = export_events(events, Path(output), fmt)
    print(f"Exported {len(events)} events to {path}")
    return 0


def run_dashboard(settings: AppSettings) -> int:
    from PySide6 import QtWidgets
    from .gui import MainWindow

    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("KeyLens")
    win = MainWindow(settings)
    win.show()
    return app.exec()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    settings = AppSettings.load(args.config)
    if args.db:
        settings.db_path = args.db

    if args.command == "record":
        return run_record(settings, args.duration)
    if args.command == "stats":
        return run_stats(settings)
    if args.command == "analyze":
        return run_analyze(settings, args)
    if args.command == "export":
        return run_export(settings, args.format, args.output)
    # dashboard is the default, like launching the desktop app
    return run_dashboard(settings)
