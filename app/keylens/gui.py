from __future__ import annotations
import sqlite3
import threading
from typing import List, Optional, Sequence
from PySide6 import QtWidgets, QtCore, QtGui

from .analytics import AnalysisReport, analyze, analyze_store
from .recorder import Recorder
from .reports import write_json, write_html
from .settings import AppSettings
from .storage import EventStore
from .notify import Notifier, summarize

import logging
logger = logging.getLogger(__name__)

# Simple sparkline widget
class Sparkline(QtWidgets.QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.data: List[float] = []  # last N inter-key intervals (ms)
        self.setMinimumHeight(48)

    def update_data(self, values: Sequence[float]):
        self.data = list(values[-200:])
        self.update()

    def paintEvent(self, e: QtGui.QPaintEvent) -> None:
        p = QtGui.QPainter(self)
        p.setRenderHint(QtGui.QPainter.Antialiasing)
        rect = self.rect().adjusted(4, 4, -4, -4)
        p.fillRect(self.rect(), QtGui.QColor(22, 22, 26))
        if not self.data:
            return
        mx = max(self.data) or 1.0
        step = rect.width() / max(len(self.data) - 1, 1)
        path = QtGui.QPainterPath()
        for i, v in enumerate(self.data):
            x = rect.left() + i * step
            y = rect.bottom() - (v / mx) * rect.height()
            if i == 0:
                path.moveTo(x, y)
            else:
                path.lineTo(x, y)
        p.setPen(QtGui.QPen(QtGui.QColor(52, 152, 219), 2))
        p.drawPath(path)

class SettingsDialog(QtWidgets.QDialog):
    def __init__(self, settings: AppSettings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.settings = settings
        layout = QtWidgets.QFormLayout(self)

        self.max_gap = QtWidgets.QSpinBox(); self.max_gap.setRange(1, 3_600_000); self.max_gap.setValue(settings.filters.max_gap_ms)
        self.min_hold = QtWidgets.QSpinBox(); self.min_hold.setRange(0, 60_000); self.min_hold.setValue(settings.filters.min_hold_ms)
        self.max_hold = QtWidgets.QSpinBox(); self.max_hold.setRange(1, 60_000); self.max_hold.setValue(settings.filters.max_hold_ms)
        self.top_n = QtWidgets.QSpinBox(); self.top_n.setRange(1, 500); self.top_n.setValue(settings.report.top_n)

        self.theme = QtWidgets.QComboBox(); self.theme.addItems(["light", "dark", "high_contrast"])
        self.theme.setCurrentText(settings.ui.theme)

        self.use_discord = QtWidgets.QCheckBox("Enable Discord")
        self.use_discord.setChecked(settings.notifications.use_discord)
        self.discord_hook = QtWidgets.QLineEdit(settings.notifications.discord_webhook)
        self.use_telegram = QtWidgets.QCheckBox("Enable Telegram")
        self.use_telegram.setChecked(settings.notifications.use_telegram)
        self.tg_token = QtWidgets.QLineEdit(settings.notifications.telegram_token)
        self.tg_chat = QtWidgets.QLineEdit(settings.notifications.telegram_chat_id)

        layout.addRow("Session break gap (ms)", self.max_gap)
        layout.addRow("Min hold (ms)", self.min_hold)
        layout.addRow("Max hold (ms)", self.max_hold)
        layout.addRow("Top N rows", self.top_n)
        layout.addRow("Theme", self.theme)
        layout.addRow(self.use_discord)
        layout.addRow("Discord webhook", self.discord_hook)
        layout.addRow(self.use_telegram)
        layout.addRow("Telegram bot token", self.tg_token)
        layout.addRow("Telegram chat id", self.tg_chat)

        btns = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Ok | QtWidgets.QDialogButtonBox.Cancel)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)
        layout.addRow(btns)

    def accept(self) -> None:
        s = self.settings
        s.filters.max_gap_ms = int(self.max_gap.value())
        s.filters.min_hold_ms = int(self.min_hold.value())
        s.filters.max_hold_ms = max(int(self.max_hold.value()), s.filters.min_hold_ms)
        s.report.top_n = int(self.top_n.value())
        s.ui.theme = self.theme.currentText()
        s.notifications.use_discord = self.use_discord.isChecked()
        s.notifications.discord_webhook = self.discord_hook.text().strip()
        s.notifications.use_telegram = self.use_telegram.isChecked()
        s.notifications.telegram_token = self.tg_token.text().strip()
        s.notifications.telegram_chat_id = self.tg_chat.text().strip()
        s.save()
        super().accept()

def _fill_table(table: QtWidgets.QTableWidget, headers: List[str], rows: List[List]) -> None:
    table.clear()
    table.setColumnCount(len(headers))
    table.setHorizontalHeaderLabels(headers)
    table.setRowCount(len(rows))
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            table.setItem(r, c, QtWidgets.QTableWidgetItem(str(value)))
    table.resizeColumnsToContents()

class MainWindow(QtWidgets.QMainWindow):
    report_ready = QtCore.Signal(object)

    def __init__(self, settings: AppSettings):
        super().__init__()
        self.settings = settings
        self.setWindowTitle("KeyLens — Typing Pattern Dashboard")
        self.setMinimumSize(960, 620)

        self.store = EventStore(settings.db_path)
        self.rec = Recorder(self.store, flush_interval_sec=settings.recorder.flush_interval_sec,
                            batch_size=settings.recorder.batch_size,
                            buffer_size=settings.recorder.buffer_size)
        self.report: Optional[AnalysisReport] = None
        self._worker: Optional[threading.Thread] = None
        self.report_ready.connect(self._on_report)

        central = QtWidgets.QWidget(); self.setCentralWidget(central)
        root = QtWidgets.QVBoxLayout(central)

        top_bar = QtWidgets.QHBoxLayout()
        self.record_btn = QtWidgets.QPushButton("Record (Ctrl+R)")
        self.stop_btn = QtWidgets.QPushButton("Stop (Ctrl+S)")
        self.refresh_btn = QtWidgets.QPushButton("Refresh (F5)")
        self.export_btn = QtWidgets.QPushButton("Export Reports")
        for w in [self.record_btn, self.stop_btn, self.refresh_btn, self.export_btn]:
            w.setCursor(QtGui.QCursor(QtCore.Qt.PointingHandCursor))
            w.setToolTip(w.text())
            top_bar.addWidget(w)
        top_bar.addStretch(1)

        kpi_grid = QtWidgets.QGridLayout()
        self.kpis = {}
        for col, name in enumerate(["Events", "Presses", "Segments", "Median interval (ms)",
                                    "P95 interval (ms)", "Mean interval (ms)"]):
            lbl = QtWidgets.QLabel("0")
            f = lbl.font(); f.setPointSize(16); lbl.setFont(f)
            kpi_grid.addWidget(QtWidgets.QLabel(name), 0, col)
            kpi_grid.addWidget(lbl, 1, col)
            self.kpis[name] = lbl

        spark_card = QtWidgets.QGroupBox("Inter-key intervals (ms; most recent)")
        sp_lay = QtWidgets.QVBoxLayout(spark_card)
        self.spark = Sparkline()
        sp_lay.addWidget(self.spark)

        self.tabs = QtWidgets.QTabWidget()
        self.tables = {}
        for name in ["Keys", "Bigrams", "Trigrams", "Key pairs", "Hold durations"]:
            t = QtWidgets.QTableWidget()
            t.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
            self.tabs.addTab(t, name)
            self.tables[name] = t

        root.addLayout(top_bar)
        root.addLayout(kpi_grid)
        root.addWidget(spark_card)
        root.addWidget(self.tabs, 1)

        self.status = self.statusBar()
        menu = self.menuBar()
        filem = menu.addMenu("&File")
        filem.addAction("Export Reports").triggered.connect(self.export_reports)
        filem.addSeparator()
        filem.addAction("Exit").triggered.connect(self.close)
        prefm = menu.addMenu("&Preferences")
        prefm.addAction("Settings…").triggered.connect(self.open_settings)

        QtGui.QShortcut(QtGui.QKeySequence("Ctrl+R"), self, activated=self.start)
        QtGui.QShortcut(QtGui.QKeySequence("Ctrl+S"), self, activated=self.stop)
        QtGui.QShortcut(QtGui.QKeySequence("F5"), self, activated=self.refresh)

        self.record_btn.clicked.connect(self.start)
        self.stop_btn.clicked.connect(self.stop)
        self.refresh_btn.clicked.connect(self.refresh)
        self.export_btn.clicked.connect(self.export_reports)

        # Live view of the recorder buffer while recording
        self.timer = QtCore.QTimer(self)
        self.timer.timeout.connect(self.refresh_live)

        self.apply_theme(self.settings.ui.theme)
        self.refresh()

    # THEME
    def apply_theme(self, theme: str):
        if theme == "dark":
            self.setStyleSheet("QWidget{background:#111;color:#e6e6e6;} QGroupBox, QTableWidget{background:#1b1b1f;border:1px solid #2a2a2f;border-radius:8px;padding:6px;}")
        elif theme == "high_contrast":
            self.setStyleSheet("QWidget{background:#000;color:#fff;} QPushButton{background:#fff;color:#000;}")
        else:
            self.setStyleSheet("")

    # ACTIONS
    def start(self):
        try:
            self.rec.start()
        except ImportError as e:
            QtWidgets.QMessageBox.warning(self, "Recording unavailable", f"Keyboard capture is not available: {e}")
            return
        self.timer.start(5000)
        self.status.showMessage("Recording started")

    def stop(self):
        self.rec.stop()
        self.timer.stop()
        self.refresh()
        self.status.showMessage("Stopped")

    def refresh(self):
        # Full history is analyzed off the UI thread with its own connection.
        if self._worker and self._worker.is_alive():
            return
        db_path, config = self.settings.db_path, self.settings.filters.to_config()

        def work():
            try:
                self.report_ready.emit(analyze_store(db_path, config))
            except sqlite3.Error:
                logger.exception("Refresh failed")

        self._worker = threading.Thread(target=work, name="KeyLensRefresh", daemon=True)
        self._worker.start()
        self.status.showMessage("Analyzing history…")

    def _on_report(self, report: AnalysisReport):
        self.report = report
        self._render(report)
        self.status.showMessage(f"Analyzed {report.total_events} events")

    def refresh_live(self):
        live = analyze(self.rec.snapshot(), self.settings.filters.to_config())
        self.spark.update_data(live.timing.overall_inter_key.intervals_ms)
        self.status.showMessage(
            f"Recording: {live.frequency.total_presses} recent presses, "
            f"median interval {live.timing.overall_inter_key.median_ms}ms")

    def _render(self, report: AnalysisReport):
        top = self.settings.report.top_n
        freq, timing = report.frequency, report.timing
        ik = timing.overall_inter_key
        self.kpis["Events"].setText(str(report.total_events))
        self.kpis["Presses"].setText(str(freq.total_presses))
        self.kpis["Segments"].setText(str(report.segment_count))
        self.kpis["Median interval (ms)"].setText(str(ik.median_ms))
        self.kpis["P95 interval (ms)"].setText(str(ik.p95_ms))
        self.kpis["Mean interval (ms)"].setText(f"{ik.mean_ms:.1f}")
        self.spark.update_data(ik.intervals_ms)

        _fill_table(self.tables["Keys"], ["Key", "Count", "%"],
                    [[k.key_name, k.count, f"{k.percentage:.2f}"] for k in freq.top_keys(top)])
        _fill_table(self.tables["Bigrams"], ["Bigram", "Count", "%"],
                    [[b.display, b.count, f"{b.percentage:.2f}"] for b in freq.top_bigrams(top)])
        _fill_table(self.tables["Trigrams"], ["Trigram", "Count", "%"],
                    [[t.display, t.count, f"{t.percentage:.2f}"] for t in freq.top_trigrams(top)])
        _fill_table(self.tables["Key pairs"], ["Pair", "n", "Mean", "Median", "P95"],
                    [[p.display, p.sample_count, f"{p.mean_ms:.1f}", p.median_ms, p.p95_ms]
                     for p in timing.top_inter_key_pairs(top)])
        _fill_table(self.tables["Hold durations"], ["Key", "n", "Mean", "Median", "P95"],
                    [[h.key_name, h.sample_count, f"{h.mean_ms:.1f}", h.median_ms, h.p95_ms]
                     for h in timing.top_hold_durations(top)])

    def open_settings(self):
        dlg = SettingsDialog(self.settings, self)
        if dlg.exec() == QtWidgets.QDialog.Accepted:
            self.apply_theme(self.settings.ui.theme)
            self.refresh()
            self.status.showMessage("Settings saved.")

    def export_reports(self):
        if self.report is None or self.report.total_events == 0:
            QtWidgets.QMessageBox.warning(self, "Nothing to export", "No keystroke data recorded yet.")
            return
        top = self.settings.report.top_n
        j = write_json(self.report, top)
        h = write_html(self.report, top)
        self.status.showMessage(f"Exported: {j} & {h}")

        notifier = Notifier.from_prefs(self.settings.notifications)
        if notifier.enabled:
            notifier.post_summary(summarize(self.report))

    def closeEvent(self, e: QtGui.QCloseEvent) -> None:
        self.rec.stop()
        self.store.close()
        super().closeEvent(e)
