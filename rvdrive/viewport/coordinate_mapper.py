"""Local display pixels to remote logical coordinate mapping"""

from __future__ import annotations

import math

from rvdrive.common.settings import settings
from rvdrive.common.types import LogicalPoint, Position, Screen

__all__ = ["logicalScreen_get", "logicalPoint_map", "coordinate_round"]


def logicalScreen_get() -> Screen:
    """
    Get the remote engine's fixed logical viewport.

    Returns:
        Logical viewport size.
    """
    return Screen(
        width=settings.LOGICAL_VIEWPORT_WIDTH,
        height=settings.LOGICAL_VIEWPORT_HEIGHT,
    )


def coordinate_round(value: float) -> int:
    """
    Round to the nearest integer with halves rounding up.

    Args:
        value: Scaled coordinate.

    Returns:
        Integer pixel coordinate.
    """
    return math.floor(value + 0.5)


def logicalPoint_map(
    pointer: Position,
    display_size: Screen,
    logical_size: Screen | None = None,
) -> LogicalPoint | None:
    """
    Map a point in local display pixels into logical space.

    The scale factors are derived from `display_size` on every call, so a
    resize takes effect for the very next event.

    Args:
        pointer: Point relative to the viewport's top-left corner.
        display_size: Current local display size.
        logical_size: Target space; defaults to the remote engine's viewport.

    Returns:
        Integer logical point, or `None` when the display is unmeasured.
    """
    if not display_size.isMeasured():
        return None
    target: Screen = logical_size or logicalScreen_get()
    scale_x: float = target.width / display_size.width
    scale_y: float = target.height / display_size.height
    return LogicalPoint(
        x=coordinate_round(pointer.x * scale_x),
        y=coordinate_round(pointer.y * scale_y),
    )
