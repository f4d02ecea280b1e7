"""Per-viewport interaction state"""

from __future__ import annotations

from typing import Optional

from rvdrive.common.types import InteractionState, Position, Screen


class ViewportState:
    """
    Mutable interaction state of one viewport instance.

    One instance exists per viewport and is handed to the input translator
    and the renderer; nothing here is shared between viewports.
    """

    def __init__(self, display_size: Optional[Screen] = None) -> None:
        """Initialize state for a viewport that has not been hovered yet"""
        # Local surface size; unmeasured until the host reports one
        self.display_size: Screen = display_size or Screen(width=0, height=0)

        self.interaction: InteractionState = InteractionState.IDLE

        # Set between pointer-down and pointer-up, cleared on leave
        self.button_held: bool = False

        # Last pointer position in local pixels, for the cursor overlay
        self.cursor_position: Optional[Position] = None

    @property
    def is_interacting(self) -> bool:
        """True while the pointer is over the viewport"""
        return self.interaction == InteractionState.INTERACTING

    def displaySize_update(self, width: float, height: float) -> None:
        """
        Replace the local display size

        Args:
            width: New surface width in pixels.
            height: New surface height in pixels.
        """
        self.display_size = Screen(width=width, height=height)

    def interaction_begin(self) -> None:
        """Pointer entered the viewport"""
        self.interaction = InteractionState.INTERACTING

    def interaction_end(self) -> None:
        """Pointer left the viewport; drops any held button to avoid stuck drags"""
        self.interaction = InteractionState.IDLE
        self.button_held = False

    def reset(self) -> None:
        """Reset interaction fields, keeping the measured display size"""
        self.interaction = InteractionState.IDLE
        self.button_held = False
        self.cursor_position = None
