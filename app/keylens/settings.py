from __future__ import annotations
import json
import logging
from dataclasses import dataclass, asdict, field
from pathlib import Path
import os
from typing import Optional

from .filters import FilterConfig

logger = logging.getLogger(__name__)

APP_DIR = Path(os.getenv("APPDATA", ".")) / "KeyLens"
CONFIG_PATH = APP_DIR / "config.json"
DB_PATH = APP_DIR / "events.db"

@dataclass
class FilterSettings:
    max_gap_ms: int = 5000
    min_hold_ms: int = 10
    max_hold_ms: int = 2000

    def to_config(self) -> FilterConfig:
        return FilterConfig(max_gap_ms=self.max_gap_ms,
                            min_hold_ms=self.min_hold_ms,
                            max_hold_ms=self.max_hold_ms)

@dataclass
class ReportSettings:
    top_n: int = 10
    detailed: bool = False

@dataclass
class RecorderSettings:
    flush_interval_sec: float = 1.0
    batch_size: int = 200
    buffer_size: int = 5000

@dataclass
class NotificationPrefs:
    use_discord: bool = False
    discord_webhook: str = ""
    use_telegram: bool = False
    telegram_token: str = ""
    telegram_chat_id: str = ""

@dataclass
class UISettings:
    theme: str = "dark"  # "light", "dark", "high_contrast"

@dataclass
class AppSettings:
    db_path: str = str(DB_PATH)
    filters: FilterSettings = field(default_factory=FilterSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    recorder: RecorderSettings = field(default_factory=RecorderSettings)
    notifications: NotificationPrefs = field(default_factory=NotificationPrefs)
    ui: UISettings = field(default_factory=UISettings)

    @staticmethod
    def load(path: Optional[Path] = None) -> "AppSettings":
        path = Path(path) if path else CONFIG_PATH
        if not path.exists():
            return AppSettings()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            # Manual hydrate to keep defaults for missing keys
            s = AppSettings()
            s.db_path = str(data.get("db_path", s.db_path))
            f = data.get("filters", {})
            s.filters = FilterSettings(
                max_gap_ms=int(f.get("max_gap_ms", s.filters.max_gap_ms)),
                min_hold_ms=int(f.get("min_hold_ms", s.filters.min_hold_ms)),
                max_hold_ms=int(f.get("max_hold_ms", s.filters.max_hold_ms)),
            )
            r = data.get("report", {})
            s.report = ReportSettings(
                top_n=int(r.get("top_n", s.report.top_n)),
                detailed=bool(r.get("detailed", s.report.detailed)),
            )
            rec = data.get("recorder", {})
            s.recorder = RecorderSettings(
                flush_interval_sec=float(rec.get("flush_interval_sec", s.recorder.flush_interval_sec)),
                batch_size=int(rec.get("batch_size", s.recorder.batch_size)),
                buffer_size=int(rec.get("buffer_size", s.recorder.buffer_size)),
            )
            n = data.get("notifications", {})
            s.notifications = NotificationPrefs(
                use_discord=bool(n.get("use_discord", False)),
                discord_webhook=str(n.get("discord_webhook", "")),
                use_telegram=bool(n.get("use_telegram", False)),
                telegram_token=str(n.get("telegram_token", "")),
                telegram_chat_id=str(n.get("telegram_chat_id", "")),
            )
            u = data.get("ui", {})
            s.ui = UISettings(theme=str(u.get("theme", s.ui.theme)))
            return s
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not read settings from %s (%s); using defaults", path, e)
            return AppSettings()

    def save(self, path: Optional[Path] = None) -> Path:
        path = Path(path) if path else CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        return path
