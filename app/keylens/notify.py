from __future__ import annotations
import requests
import logging

from .analytics import AnalysisReport

logger = logging.getLogger(__name__)

def summarize(report: AnalysisReport) -> str:
    ik = report.timing.overall_inter_key
    top = report.frequency.top_keys(3)
    keys = ", ".join(k.key_name for k in top) or "none"
    return (
        f"KeyLens: presses={report.frequency.total_presses}, segments={report.segment_count}, "
        f"median_interval={ik.median_ms}ms, p95_interval={ik.p95_ms}ms, top_keys={keys}"
    )

class Notifier:
    def __init__(self, discord_webhook: str | None = None, telegram_token: str | None = None, telegram_chat_id: str | None = None):
        self.discord_webhook = discord_webhook or ""
        self.telegram_token = telegram_token or ""
        self.telegram_chat_id = telegram_chat_id or ""

    @staticmethod
    def from_prefs(prefs) -> "Notifier":
        return Notifier(prefs.discord_webhook if prefs.use_discord else None,
                        prefs.telegram_token if prefs.use_telegram else None,
                        prefs.telegram_chat_id if prefs.use_telegram else None)

    @property
    def enabled(self) -> bool:
        return bool(self.discord_webhook or (self.telegram_token and self.telegram_chat_id))

    def post_summary(self, summary: str) -> None:
        # Fail gracefully on network errors
        if self.discord_webhook:
            try:
                resp = requests.post(self.discord_webhook, json={"content": summary}, timeout=5)
                if not resp.ok:
                    logger.warning("Discord webhook returned %s", resp.status_code)
            except requests.RequestException as e:
                logger.warning("Discord webhook error: %s", e)
        if self.telegram_token and self.telegram_chat_id:
            try:
                url = f"https://api.telegram.org/bot{self.telegram_token}/sendMessage"
                resp = requests.post(url, json={"chat_id": self.telegram_chat_id, "text": summary}, timeout=5)
                if not resp.ok:
                    logger.warning("Telegram sendMessage returned %s", resp.status_code)
            except requests.RequestException as e:
                logger.warning("Telegram error: %s", e)
