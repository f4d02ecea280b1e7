"""Common types and data structures for rvdrive"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EventType(Enum):
    """Types of raw local viewport events"""
    POINTER_MOVE = "move"
    POINTER_DOWN = "pointer_down"
    POINTER_UP = "pointer_up"
    CLICK = "click"
    CONTEXT_MENU = "context_menu"
    WHEEL = "wheel"
    KEY_DOWN = "keydown"
    POINTER_ENTER = "enter"
    POINTER_LEAVE = "leave"
    RESIZE = "resize"


class MouseButton(Enum):
    """Pointer buttons, valued by their remote wire name"""
    PRIMARY = "left"
    MIDDLE = "middle"
    SECONDARY = "right"

    @staticmethod
    def domButton_parse(code: int) -> "MouseButton":
        """
        Map a DOM-style button code (0=primary, 1=middle, 2=secondary)

        Args:
            code: Button code reported by the host UI.

        Returns:
            Matching MouseButton.

        Raises:
            ValueError: If the code is not a known button.
        """
        try:
            return _DOM_BUTTONS[code]
        except KeyError as exc:
            raise ValueError(f"Unknown pointer button code: {code}") from exc


_DOM_BUTTONS: dict[int, MouseButton] = {
    0: MouseButton.PRIMARY,
    1: MouseButton.MIDDLE,
    2: MouseButton.SECONDARY,
}


class InteractionState(Enum):
    """Interaction focus of one viewport"""
    IDLE = "idle"
    INTERACTING = "interacting"


class ConnectionState(Enum):
    """Frame acquisition state owned by the connection manager"""
    DISCONNECTED = "disconnected"
    LIVE_PUSH = "live_push"
    DEGRADED_POLLING = "degraded_polling"


class FrameSource(Enum):
    """How a frame reached the client"""
    PUSH = "push"
    POLL = "poll"


@dataclass(frozen=True)
class Position:
    """2D position in local display pixels"""
    x: float
    y: float

    def isWithinBounds(self, width: float, height: float) -> bool:
        """Check if position is within given bounds"""
        return 0 <= self.x <= width and 0 <= self.y <= height


@dataclass(frozen=True)
class LogicalPoint:
    """Integer point in the remote engine's logical coordinate space"""
    x: int
    y: int


@dataclass(frozen=True)
class Screen:
    """Viewport dimensions in pixels"""
    width: float
    height: float

    def isMeasured(self) -> bool:
        """Check that both dimensions are usable for scaling"""
        return self.width > 0 and self.height > 0

    def contains(self, pos: Position) -> bool:
        """Check if position is within screen bounds"""
        return pos.isWithinBounds(self.width, self.height)


@dataclass(frozen=True)
class ModifierState:
    """Modifier keys held during one keyboard event"""
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False

    def commandModifier_check(self) -> bool:
        """True when a modifier that turns a key into a shortcut is held"""
        return self.ctrl or self.alt or self.meta

    def payload_build(self) -> dict[str, bool]:
        """Wire representation of the modifier flags"""
        return {"ctrl": self.ctrl, "alt": self.alt, "shift": self.shift, "meta": self.meta}


@dataclass
class ClickRecord:
    """Last classified click; one mutable slot per viewport"""
    timestamp: float
    x: int
    y: int
    click_count: int = 1


@dataclass(frozen=True)
class PointerEvent:
    """Pointer event in local display pixels"""
    event_type: EventType
    position: Optional[Position] = None
    button: MouseButton = MouseButton.PRIMARY
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class WheelEvent:
    """Wheel event with device-relative deltas"""
    delta_x: float
    delta_y: float
    event_type: EventType = EventType.WHEEL


@dataclass(frozen=True)
class KeyEvent:
    """Key-down event with the host's key identifier"""
    key: str
    key_code: int = 0
    modifiers: ModifierState = field(default_factory=ModifierState)
    event_type: EventType = EventType.KEY_DOWN


@dataclass(frozen=True)
class FocusEvent:
    """Pointer enter/leave of the viewport surface"""
    event_type: EventType


@dataclass(frozen=True)
class ResizeEvent:
    """New local display size of the viewport surface"""
    width: float
    height: float
    event_type: EventType = EventType.RESIZE


ViewportEvent = PointerEvent | WheelEvent | KeyEvent | FocusEvent | ResizeEvent


@dataclass(frozen=True)
class ViewportFrame:
    """Encoded image for one tab; superseded by the next frame of that tab"""
    image: bytes
    session_id: str
    tab_id: Optional[str] = None
    url: Optional[str] = None
    source: FrameSource = FrameSource.PUSH
    received_at: float = field(default_factory=time.monotonic)

    def mimeType_get(self) -> str:
        """Guess the image MIME type from its magic bytes"""
        if self.image.startswith(b"\x89PNG"):
            return "image/png"
        if self.image.startswith(b"\xff\xd8"):
            return "image/jpeg"
        if self.image[:4] == b"RIFF" and self.image[8:12] == b"WEBP":
            return "image/webp"
        return "application/octet-stream"
