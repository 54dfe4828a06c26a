from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


class EventType(Enum):
    PRESS = "press"
    RELEASE = "release"

    def as_str(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def parse(value: str) -> "EventType":
        if value == "press":
            return EventType.PRESS
        if value == "release":
            return EventType.RELEASE
        raise ValueError(f"unknown event type: {value!r}")


class Modifier(Enum):
    SHIFT = "shift"
    CONTROL = "control"
    ALT = "alt"
    COMMAND = "command"
    CAPS_LOCK = "capslock"
    FUNCTION = "function"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class KeystrokeEvent:
    timestamp: int  # ms since epoch
    key_code: int
    event_type: EventType
    modifiers: Tuple[Modifier, ...] = field(default_factory=tuple)
    application: str = ""

    @property
    def is_press(self) -> bool:
        return self.event_type is EventType.PRESS

    @staticmethod
    def now(key_code: int, event_type: EventType,
            modifiers: Iterable[Modifier] = (), application: str = "") -> "KeystrokeEvent":
        return KeystrokeEvent(
            timestamp=int(time.time() * 1000),
            key_code=int(key_code),
            event_type=event_type,
            modifiers=tuple(modifiers),
            application=application,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "key_code": self.key_code,
            "event_type": self.event_type.as_str(),
            "modifiers": [m.value for m in self.modifiers],
            "application": self.application,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "KeystrokeEvent":
        return KeystrokeEvent(
            timestamp=int(data["timestamp"]),
            key_code=int(data["key_code"]),
            event_type=EventType.parse(str(data.get("event_type", "press"))),
            modifiers=tuple(Modifier(m) for m in data.get("modifiers", [])),
            application=str(data.get("application", "")),
        )
