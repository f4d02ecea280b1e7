"""
Raw local viewport events to remote automation commands.

This module owns the interaction-focus state machine and the per-event
translation policy. Every event resolves synchronously, in arrival order, to
either one outbound command or a `Suppressed` result that tells the host UI
whether to cancel its own default handling.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from rvdrive.common.types import (
    EventType,
    FocusEvent,
    KeyEvent,
    LogicalPoint,
    MouseButton,
    PointerEvent,
    Position,
    ResizeEvent,
    ViewportEvent,
    WheelEvent,
)
from rvdrive.protocol.commands import (
    ClickCommand,
    Command,
    MoveCommand,
    ScrollCommand,
    Suppressed,
    SuppressReason,
)
from rvdrive.viewport.click_classifier import ClickClassifier
from rvdrive.viewport.coordinate_mapper import logicalPoint_map
from rvdrive.viewport.key_translator import key_translate
from rvdrive.viewport.state import ViewportState

logger = logging.getLogger(__name__)

__all__ = ["InputEventTranslator", "TranslationResult"]

TranslationResult = Command | Suppressed


class InputEventTranslator:
    """Translates one viewport's raw events into outbound commands."""

    def __init__(
        self,
        state: ViewportState,
        classifier: ClickClassifier | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize translator for one viewport.

        Args:
            state:
                Interaction state owned by the viewport.
            classifier:
                Click classifier; a fresh one per viewport by default.
            clock:
                Monotonic clock used when events carry no timestamp.
        """
        self.state: ViewportState = state
        self.classifier: ClickClassifier = classifier or ClickClassifier()
        self._clock: Callable[[], float] = clock

    def event_translate(self, event: ViewportEvent) -> TranslationResult:
        """
        Translate one raw local event.

        Args:
            event:
                Event delivered by the host UI.

        Returns:
            Outbound command, or `Suppressed` with the default-handling flag.
        """
        result: TranslationResult
        if isinstance(event, FocusEvent):
            result = self.focus_handle(event)
        elif isinstance(event, ResizeEvent):
            self.state.displaySize_update(event.width, event.height)
            result = Suppressed(reason=SuppressReason.STATE_ONLY)
        elif isinstance(event, WheelEvent):
            result = self.wheel_handle(event)
        elif isinstance(event, KeyEvent):
            result = self.key_handle(event)
        elif event.event_type == EventType.POINTER_MOVE:
            result = self.move_handle(event)
        elif event.event_type in (EventType.CLICK, EventType.CONTEXT_MENU):
            result = self.click_handle(event)
        elif event.event_type == EventType.POINTER_DOWN:
            self.state.button_held = True
            result = Suppressed(reason=SuppressReason.STATE_ONLY, default_prevented=True)
        elif event.event_type == EventType.POINTER_UP:
            self.state.button_held = False
            result = Suppressed(reason=SuppressReason.STATE_ONLY)
        else:
            logger.debug("Ignoring event %s", event.event_type.value)
            result = Suppressed(reason=SuppressReason.STATE_ONLY)

        logger.debug("%s -> %s", event.event_type.value, result)
        return result

    def focus_handle(self, event: FocusEvent) -> Suppressed:
        """
        Apply the IDLE/INTERACTING focus transitions.

        Args:
            event:
                Pointer enter or leave.

        Returns:
            State-only suppression.
        """
        if event.event_type == EventType.POINTER_ENTER:
            if not self.state.is_interacting:
                logger.info("Viewport input focus claimed")
            self.state.interaction_begin()
        elif event.event_type == EventType.POINTER_LEAVE:
            if self.state.is_interacting:
                logger.info("Viewport input focus released")
            self.state.interaction_end()
        return Suppressed(reason=SuppressReason.STATE_ONLY)

    def move_handle(self, event: PointerEvent) -> TranslationResult:
        """
        Translate pointer motion; only reported while interacting.

        Args:
            event:
                Pointer move in local pixels.

        Returns:
            Move command or suppression.
        """
        if not self.state.is_interacting:
            return Suppressed(reason=SuppressReason.NOT_INTERACTING)
        if event.position is None:
            return Suppressed(reason=SuppressReason.MAPPING_UNAVAILABLE)

        self.state.cursor_position = event.position
        point: LogicalPoint | None = logicalPoint_map(event.position, self.state.display_size)
        if point is None:
            return Suppressed(reason=SuppressReason.MAPPING_UNAVAILABLE)
        return MoveCommand(x=point.x, y=point.y)

    def click_handle(self, event: PointerEvent) -> TranslationResult:
        """
        Translate a click or context-menu request.

        A context-menu request is forwarded as a secondary-button click and
        the local menu is always cancelled.

        Args:
            event:
                Click or context-menu event in local pixels.

        Returns:
            Click command or unmeasured-viewport suppression.
        """
        button: MouseButton = event.button
        if event.event_type == EventType.CONTEXT_MENU:
            button = MouseButton.SECONDARY

        position: Position | None = event.position
        point: LogicalPoint | None = None
        if position is not None:
            point = logicalPoint_map(position, self.state.display_size)
        if point is None:
            logger.warning("Click dropped: viewport size not measured yet")
            return Suppressed(reason=SuppressReason.MAPPING_UNAVAILABLE, default_prevented=True)

        now: float = event.timestamp if event.timestamp is not None else self._clock()
        click_count: int = self.classifier.click_classify(point, now)
        return ClickCommand(x=point.x, y=point.y, button=button, click_count=click_count)

    def wheel_handle(self, event: WheelEvent) -> ScrollCommand:
        """
        Forward wheel deltas without scaling.

        Args:
            event:
                Wheel event.

        Returns:
            Scroll command.
        """
        return ScrollCommand(delta_x=event.delta_x, delta_y=event.delta_y)

    def key_handle(self, event: KeyEvent) -> TranslationResult:
        """
        Translate a key-down while interacting.

        Args:
            event:
                Key-down with modifier state.

        Returns:
            Keypress/type command, or suppression that keeps local defaults
            for reserved shortcuts and unfocused viewports.
        """
        if not self.state.is_interacting:
            return Suppressed(reason=SuppressReason.NOT_INTERACTING)
        return key_translate(event.key, event.key_code, event.modifiers)
