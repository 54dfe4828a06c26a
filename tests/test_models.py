import json

import pytest

from keylens.keycodes import key_name
from keylens.models import EventType, KeystrokeEvent, Modifier


def test_event_type_strings():
    assert EventType.PRESS.as_str() == "press"
    assert str(EventType.RELEASE) == "release"
    assert EventType.parse("press") is EventType.PRESS
    assert EventType.parse("release") is EventType.RELEASE


def test_event_type_rejects_unknown_strings():
    for bad in ("", "Press", "keydown"):
        with pytest.raises(ValueError):
            EventType.parse(bad)
    with pytest.raises(ValueError):
        KeystrokeEvent.from_dict({"timestamp": 1, "key_code": 0, "event_type": "hold"})


def test_modifier_strings():
    assert str(Modifier.SHIFT) == "shift"
    assert str(Modifier.CAPS_LOCK) == "capslock"


def test_now_stamps_current_time():
    e = KeystrokeEvent.now(0x00, EventType.PRESS, [Modifier.SHIFT], "com.test.app")
    assert e.timestamp > 0
    assert e.modifiers == (Modifier.SHIFT,)
    assert e.is_press


def test_dict_round_trip():
    e = KeystrokeEvent(1234567890, 0x00, EventType.PRESS, (Modifier.SHIFT, Modifier.COMMAND), "com.test.app")
    d = json.loads(json.dumps(e.to_dict()))
    assert d["event_type"] == "press"
    assert d["modifiers"] == ["shift", "command"]
    assert KeystrokeEvent.from_dict(d) == e


def test_key_names():
    assert key_name(0x00) == "A"
    assert key_name(0x31) == "Space"
    assert key_name(0x24) == "Return"
    assert key_name(0x38) == "LeftShift"
    assert key_name(0xFF) == "Unknown(0xFF)"
