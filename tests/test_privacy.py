from keylens.models import EventType, Modifier
from keylens.recorder import Recorder, _STOP
from keylens.storage import EventStore


class K:
    def __init__(self, vk, name=None, char=None):
        self.vk = vk
        if name:
            self.name = name
        if char:
            self.char = char


def make_recorder(tmp_path, buffer_size=5000):
    ticks = iter(range(1000, 100000, 50))
    store = EventStore(tmp_path / "events.db")
    r = Recorder(store, app_provider=lambda: "com.test.app", clock=lambda: next(ticks),
                 buffer_size=buffer_size)
    r._running.set()
    return r, store


def test_recorder_no_plaintext_storage(tmp_path):
    r, store = make_recorder(tmp_path)
    k = K(0x00, char="a")

    r._on_press(k)
    r._on_release(k)

    events = r.snapshot()
    assert [e.event_type for e in events] == [EventType.PRESS, EventType.RELEASE]
    assert all(e.key_code == 0x00 and e.application == "com.test.app" for e in events)
    # No attribute that stores plaintext
    assert not any(hasattr(e, "char") for e in events)
    assert set(events[0].to_dict()) == {"timestamp", "key_code", "event_type", "modifiers", "application"}
    store.close()


def test_modifiers_tracked(tmp_path):
    r, store = make_recorder(tmp_path)
    shift = K(0x38, name="shift")

    r._on_press(shift)
    e = r._on_press(K(0x00))
    r._on_release(shift)
    after = r._on_press(K(0x01))

    assert e.modifiers == (Modifier.SHIFT,)
    assert after.modifiers == ()
    store.close()


def test_ignored_when_not_running(tmp_path):
    r, store = make_recorder(tmp_path)
    r._running.clear()
    assert r._on_press(K(0x00)) is None
    assert r._on_press(K(None)) is None
    assert r.snapshot() == []
    store.close()


def test_writer_flushes_to_store(tmp_path):
    r, store = make_recorder(tmp_path)
    for code in (0x00, 0x01, 0x02):
        r._on_press(K(code))
    r._queue.put(_STOP)
    r._write_loop()

    assert r.written == 3
    assert [e.key_code for e in store.all_events()] == [0x00, 0x01, 0x02]
    store.close()


def test_snapshot_keeps_only_recent_events(tmp_path):
    r, store = make_recorder(tmp_path, buffer_size=100)
    last = None
    for i in range(250):
        last = r._on_press(K(i % 50))

    events = r.snapshot()
    assert len(events) == 100
    assert events[-1] == last
    assert events[0].timestamp < events[-1].timestamp
    # every event still goes to the writer queue
    assert r.pending() == 250
    store.close()
