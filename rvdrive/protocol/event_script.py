"""
JSON-lines input event scripts.

Each line describes one raw local viewport event, as a host UI would have
delivered it, plus an optional `delay_ms` to wait before delivering it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

from rvdrive.common.types import (
    EventType,
    FocusEvent,
    KeyEvent,
    ModifierState,
    MouseButton,
    PointerEvent,
    Position,
    ResizeEvent,
    ViewportEvent,
    WheelEvent,
)

__all__ = ["ScriptedEvent", "scriptEvent_parse", "scriptLines_parse"]

_BUTTON_NAMES: dict[str, MouseButton] = {
    "primary": MouseButton.PRIMARY,
    "left": MouseButton.PRIMARY,
    "middle": MouseButton.MIDDLE,
    "secondary": MouseButton.SECONDARY,
    "right": MouseButton.SECONDARY,
}


@dataclass(frozen=True)
class ScriptedEvent:
    """One event of a script and its delay relative to the previous one."""

    event: ViewportEvent
    delay_ms: float = 0.0


def scriptEvent_parse(data: dict[str, Any]) -> ScriptedEvent:
    """
    Parse one decoded script entry.

    Args:
        data:
            Decoded JSON object for one line.

    Returns:
        Scripted event.

    Raises:
        ValueError:
            Raised for unknown event types or missing fields.
    """
    try:
        event_type: EventType = EventType(data["type"])
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown or missing event type in {data!r}") from exc

    delay_ms: float = float(data.get("delay_ms", 0))
    try:
        event: ViewportEvent = _event_build(event_type, data)
    except KeyError as exc:
        raise ValueError(f"Event {event_type.value} is missing field {exc}") from exc
    return ScriptedEvent(event=event, delay_ms=delay_ms)


def _event_build(event_type: EventType, data: dict[str, Any]) -> ViewportEvent:
    """Build the typed event for one script entry."""
    if event_type in (EventType.POINTER_ENTER, EventType.POINTER_LEAVE):
        return FocusEvent(event_type=event_type)
    if event_type == EventType.WHEEL:
        return WheelEvent(delta_x=float(data.get("delta_x", 0)), delta_y=float(data["delta_y"]))
    if event_type == EventType.KEY_DOWN:
        return KeyEvent(
            key=str(data["key"]),
            key_code=int(data.get("key_code", 0)),
            modifiers=ModifierState(
                ctrl=bool(data.get("ctrl", False)),
                alt=bool(data.get("alt", False)),
                shift=bool(data.get("shift", False)),
                meta=bool(data.get("meta", False)),
            ),
        )
    if event_type == EventType.RESIZE:
        return ResizeEvent(width=float(data["width"]), height=float(data["height"]))

    position: Position | None = None
    if "x" in data or event_type not in (EventType.POINTER_DOWN, EventType.POINTER_UP):
        position = Position(x=float(data["x"]), y=float(data["y"]))
    return PointerEvent(
        event_type=event_type,
        position=position,
        button=_button_parse(data.get("button", "primary")),
    )


def _button_parse(value: Any) -> MouseButton:
    """Accept DOM button codes or button names."""
    if isinstance(value, int):
        return MouseButton.domButton_parse(value)
    try:
        return _BUTTON_NAMES[str(value).lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown pointer button: {value!r}") from exc


def scriptLines_parse(lines: Iterable[str]) -> Iterator[ScriptedEvent]:
    """
    Parse JSON-lines text, skipping blank lines and `#` comments.

    Args:
        lines:
            Raw script lines.

    Yields:
        Scripted events in file order.

    Raises:
        ValueError:
            Raised with the offending line number for malformed lines.
    """
    for line_number, line in enumerate(lines, start=1):
        stripped: str = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            data = json.loads(stripped)
            if not isinstance(data, dict):
                raise ValueError("entry must be a JSON object")
            yield scriptEvent_parse(data)
        except ValueError as exc:
            raise ValueError(f"Event script line {line_number}: {exc}") from exc
