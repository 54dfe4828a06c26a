import time

from keylens.models import EventType, KeystrokeEvent, Modifier
from keylens.storage import EventStore


def ev(ts, code, kind=EventType.PRESS, app="com.test.app"):
    return KeystrokeEvent(timestamp=ts, key_code=code, event_type=kind, application=app)


def test_empty_store(tmp_path):
    with EventStore(tmp_path / "events.db") as store:
        assert store.total_count() == 0
        assert store.date_range() is None
        assert store.all_events() == []


def test_insert_and_read_back(tmp_path):
    with EventStore(tmp_path / "events.db") as store:
        e = KeystrokeEvent(1000, 0x00, EventType.PRESS, (Modifier.SHIFT,), "com.test.app")
        store.insert_event(e)
        store.insert_events([ev(1050, 0x00, EventType.RELEASE)])
        events = store.all_events()
        assert events[0] == e
        assert events[1].event_type is EventType.RELEASE
        assert store.total_count() == 2
        assert store.press_count() == 1


def test_events_ordered_by_timestamp(tmp_path):
    with EventStore(tmp_path / "events.db") as store:
        store.insert_events([ev(3000, 2), ev(1000, 0), ev(2000, 1)])
        assert [e.timestamp for e in store.all_events()] == [1000, 2000, 3000]


def test_range_and_since(tmp_path):
    with EventStore(tmp_path / "events.db") as store:
        store.insert_events([ev(1000, 0), ev(2000, 1), ev(3000, 2)])
        got = store.events_in_range(1500, 2500)
        assert [e.key_code for e in got] == [1]
        assert store.date_range() == (1000, 3000)

        now = int(time.time() * 1000)
        store.insert_event(ev(now - 1000, 9))
        assert [e.key_code for e in store.events_since(1)] == [9]


def test_top_keys_and_apps(tmp_path):
    with EventStore(tmp_path / "events.db") as store:
        store.insert_events([ev(1000, 0x00)] * 5 + [ev(1000, 0x01)] * 3 + [ev(1000, 0x02)])
        store.insert_events([ev(1001, 0x00, app="com.app.two")])
        store.insert_events([ev(1002, 0x00, EventType.RELEASE, app="com.app.three")] * 4)
        assert store.top_keys(2) == [(0x00, 6), (0x01, 3)]
        assert store.top_applications(5) == [("com.test.app", 9), ("com.app.two", 1)]


def test_cleanup_before(tmp_path):
    with EventStore(tmp_path / "events.db") as store:
        store.insert_events([ev(1000, 0), ev(2000, 1), ev(3000, 2)])
        assert store.cleanup_before(2500) == 2
        assert store.total_count() == 1


def test_rows_with_unknown_event_type_are_skipped(tmp_path, caplog):
    with EventStore(tmp_path / "events.db") as store:
        store.insert_events([ev(1000, 0x00), ev(1100, 0x00, EventType.RELEASE)])
        with store._conn:
            store._conn.execute(
                "INSERT INTO keystroke_events (timestamp, key_code, event_type, modifiers, application)"
                " VALUES (1050, 1, 'hold', '[]', 'com.test.app')"
            )
        with caplog.at_level("WARNING", logger="keylens.storage"):
            events = store.all_events()
        assert [(e.timestamp, e.event_type) for e in events] == [
            (1000, EventType.PRESS), (1100, EventType.RELEASE)]
        assert "hold" in caplog.text
        assert len(store.events_in_range(0, 2000)) == 2
        assert store.total_count() == 3
