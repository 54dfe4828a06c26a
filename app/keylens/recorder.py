from __future__ import annotations
import queue
import threading
from collections import deque
import time
from typing import Callable, Dict, List, Optional, Set
import logging

from .models import EventType, KeystrokeEvent, Modifier
from .storage import EventStore

logger = logging.getLogger(__name__)

# IMPORTANT: Do not log plaintext. We only store key codes and timings.

# pynput Key names -> modifier flag
MODIFIER_KEYS: Dict[str, Modifier] = {
    "shift": Modifier.SHIFT, "shift_l": Modifier.SHIFT, "shift_r": Modifier.SHIFT,
    "ctrl": Modifier.CONTROL, "ctrl_l": Modifier.CONTROL, "ctrl_r": Modifier.CONTROL,
    "alt": Modifier.ALT, "alt_l": Modifier.ALT, "alt_r": Modifier.ALT, "alt_gr": Modifier.ALT,
    "cmd": Modifier.COMMAND, "cmd_l": Modifier.COMMAND, "cmd_r": Modifier.COMMAND,
    "caps_lock": Modifier.CAPS_LOCK,
}

_STOP = object()


def _now_ms() -> int:
    return int(time.time() * 1000)


class Recorder:
    def __init__(self, store: EventStore, flush_interval_sec: float = 1.0, batch_size: int = 200,
                 app_provider: Optional[Callable[[], str]] = None,
                 clock: Callable[[], int] = _now_ms,
                 buffer_size: int = 5000):
        self.store = store
        self.flush_interval_sec = flush_interval_sec
        self.batch_size = batch_size
        self.app_provider = app_provider or (lambda: "unknown")
        self._clock = clock

        self._listener = None
        self._writer: Optional[threading.Thread] = None
        self._queue: "queue.Queue" = queue.Queue()
        self._running = threading.Event()
        self._lock = threading.Lock()

        self._modifiers: Set[Modifier] = set()
        # Most recent events only; the store holds the full history.
        self._captured: "deque[KeystrokeEvent]" = deque(maxlen=max(buffer_size, 1))
        self.written = 0

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def _vk_of(self, key) -> Optional[int]:
        try:
            if hasattr(key, 'vk') and key.vk is not None:
                return int(key.vk)
            if hasattr(key, 'value') and hasattr(key.value, 'vk'):
                return int(key.value.vk)
        except (TypeError, ValueError):
            return None
        return None

    def _modifier_of(self, key) -> Optional[Modifier]:
        return MODIFIER_KEYS.get(getattr(key, 'name', None) or "")

    def _record(self, key, event_type: EventType) -> Optional[KeystrokeEvent]:
        if not self._running.is_set():
            return None
        vk = self._vk_of(key)
        if vk is None:
            return None
        mod = self._modifier_of(key)
        if mod is not None and mod is not Modifier.CAPS_LOCK:
            if event_type is EventType.PRESS:
                self._modifiers.add(mod)
            else:
                self._modifiers.discard(mod)
        elif mod is Modifier.CAPS_LOCK and event_type is EventType.PRESS:
            self._modifiers ^= {Modifier.CAPS_LOCK}
        event = KeystrokeEvent(
            timestamp=self._clock(),
            key_code=vk,
            event_type=event_type,
            modifiers=tuple(sorted(self._modifiers, key=lambda m: m.value)),
            application=self.app_provider(),
        )
        with self._lock:
            self._captured.append(event)
        self._queue.put(event)
        return event

    def _on_press(self, key):
        return self._record(key, EventType.PRESS)

    def _on_release(self, key):
        return self._record(key, EventType.RELEASE)

    def snapshot(self) -> List[KeystrokeEvent]:
        """Copy of the most recent captured events (at most buffer_size)."""
        with self._lock:
            return list(self._captured)

    def pending(self) -> int:
        return self._queue.qsize()

    def _flush(self, batch: List[KeystrokeEvent]) -> None:
        if not batch:
            return
        try:
            self.written += self.store.insert_events(batch)
        except Exception:
            logger.exception("Failed to write %d events; batch dropped", len(batch))
        batch.clear()

    def _write_loop(self):
        logger.info("Writer thread started")
        batch: List[KeystrokeEvent] = []
        last_flush = time.monotonic()
        while True:
            try:
                item = self._queue.get(timeout=self.flush_interval_sec)
            except queue.Empty:
                item = None
            if item is _STOP:
                break
            if item is not None:
                batch.append(item)
            if len(batch) >= self.batch_size or time.monotonic() - last_flush >= self.flush_interval_sec:
                self._flush(batch)
                last_flush = time.monotonic()
        self._flush(batch)
        logger.info("Writer thread exiting")

    def start(self):
        if self._running.is_set():
            return
        from pynput import keyboard  # needs a display / input permission, so only on start

        with self._lock:
            self._captured.clear()
        self._modifiers.clear()
        self._running.set()
        self._writer = threading.Thread(target=self._write_loop, name="KeyLensWriter", daemon=True)
        self._writer.start()
        self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._listener.start()
        logger.info("Recording started")

    def stop(self):
        if not self._running.is_set():
            return
        self._running.clear()
        if self._listener:
            self._listener.stop()
        self._listener = None
        self._queue.put(_STOP)
        if self._writer:
            self._writer.join(timeout=5)
        self._writer = None
        logger.info("Recording stopped; %d events written", self.written)
