"""Outbound remote-automation commands and suppression results"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from rvdrive.common.types import ModifierState, MouseButton


class CommandType(Enum):
    """Commands understood by the remote automation engine"""

    MOVE = "move"
    CLICK = "click"
    TYPE = "type"
    KEYPRESS = "keypress"
    SCROLL = "scroll"
    NAVIGATE = "navigate"


@dataclass(frozen=True)
class MoveCommand:
    """Pointer move in logical space"""

    x: int
    y: int
    command_type: CommandType = field(default=CommandType.MOVE, init=False)


@dataclass(frozen=True)
class ClickCommand:
    """Click in logical space with its classified click count"""

    x: int
    y: int
    button: MouseButton = MouseButton.PRIMARY
    click_count: int = 1
    command_type: CommandType = field(default=CommandType.CLICK, init=False)


@dataclass(frozen=True)
class TypeCommand:
    """Literal text insertion, one character per key event"""

    text: str
    command_type: CommandType = field(default=CommandType.TYPE, init=False)


@dataclass(frozen=True)
class KeypressCommand:
    """Structured key press in the remote key vocabulary"""

    key: str
    key_code: int = 0
    modifiers: ModifierState = field(default_factory=ModifierState)
    command_type: CommandType = field(default=CommandType.KEYPRESS, init=False)


@dataclass(frozen=True)
class ScrollCommand:
    """Wheel scroll with device-relative deltas"""

    delta_x: float
    delta_y: float
    command_type: CommandType = field(default=CommandType.SCROLL, init=False)


@dataclass(frozen=True)
class NavigateCommand:
    """Top-level navigation of a tab"""

    url: str
    tab_id: str | None = None
    command_type: CommandType = field(default=CommandType.NAVIGATE, init=False)


Command = (
    MoveCommand
    | ClickCommand
    | TypeCommand
    | KeypressCommand
    | ScrollCommand
    | NavigateCommand
)


class SuppressReason(Enum):
    """Why a local event produced no outbound command"""

    RESERVED_SHORTCUT = "reserved_shortcut"
    NOT_INTERACTING = "not_interacting"
    MAPPING_UNAVAILABLE = "mapping_unavailable"
    STATE_ONLY = "state_only"


@dataclass(frozen=True)
class Suppressed:
    """
    Translation result for events that must not reach the remote engine.

    `default_prevented` tells the host UI whether to cancel its own default
    handling of the event; reserved shortcuts keep it `False` so they still
    work locally.
    """

    reason: SuppressReason
    default_prevented: bool = False


def defaultPrevented_check(result: Command | Suppressed) -> bool:
    """
    Decide whether the host UI must cancel its default handling.

    Args:
        result: Translation result for one local event.

    Returns:
        `True` for every forwarded command, else the suppression's own flag.
    """
    if isinstance(result, Suppressed):
        return result.default_prevented
    return True


class CommandBuilder:
    """Builds REST request bodies from commands"""

    @staticmethod
    def payload_build(command: Command) -> Dict[str, Any]:
        """
        Build the JSON body for one command

        Args:
            command: Outbound command.

        Returns:
            JSON-serializable request body.

        Raises:
            TypeError: If the command type is unknown.
        """
        if isinstance(command, MoveCommand):
            return {"x": command.x, "y": command.y}
        if isinstance(command, ClickCommand):
            return {
                "x": command.x,
                "y": command.y,
                "button": command.button.value,
                "click_count": command.click_count,
            }
        if isinstance(command, TypeCommand):
            return {"text": command.text}
        if isinstance(command, KeypressCommand):
            return {
                "key": command.key,
                "key_code": command.key_code,
                "modifiers": command.modifiers.payload_build(),
            }
        if isinstance(command, ScrollCommand):
            return {"delta_x": command.delta_x, "delta_y": command.delta_y}
        if isinstance(command, NavigateCommand):
            return {"url": command.url, "tab_id": command.tab_id}
        raise TypeError(f"Unsupported command: {command!r}")
