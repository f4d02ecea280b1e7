"""
Single versus double click classification.

The classifier keeps exactly one ClickRecord and replaces it on every click,
whatever the outcome. A click that completed a double click is consumed and
cannot pair again, so a third rapid click at the same spot is reported as a
single click: sequences classify as 1, 2, 1 and there is no triple-click count.
"""

from __future__ import annotations

import logging

from rvdrive.common.settings import settings
from rvdrive.common.types import ClickRecord, LogicalPoint

logger = logging.getLogger(__name__)

__all__ = ["ClickClassifier"]


class ClickClassifier:
    """Classifies clicks against the last recorded click of one viewport."""

    def __init__(
        self,
        window_seconds: float = settings.DOUBLE_CLICK_WINDOW_SEC,
        distance_px: int = settings.DOUBLE_CLICK_DISTANCE_PX,
    ) -> None:
        """
        Initialize classifier thresholds.

        Args:
            window_seconds:
                Maximum gap between clicks of a double click.
            distance_px:
                Per-axis logical distance below which clicks coincide.
        """
        self.window_seconds: float = window_seconds
        self.distance_px: int = distance_px
        self.last_click: ClickRecord | None = None

    def click_classify(self, point: LogicalPoint, now: float) -> int:
        """
        Classify one click and overwrite the stored record.

        Args:
            point:
                Click position in logical space.
            now:
                Click time in seconds on a monotonic clock.

        Returns:
            Click count, 1 or 2.
        """
        click_count: int = 2 if self.doubleClick_check(point, now) else 1
        self.last_click = ClickRecord(
            timestamp=now, x=point.x, y=point.y, click_count=click_count
        )
        logger.debug("Click at (%s, %s) classified as count=%s", point.x, point.y, click_count)
        return click_count

    def doubleClick_check(self, point: LogicalPoint, now: float) -> bool:
        """
        Check whether a click would pair with the stored record.

        Args:
            point:
                Click position in logical space.
            now:
                Click time in seconds.

        Returns:
            `True` when the stored click is unconsumed and time and both
            axis distances are within thresholds.
        """
        last: ClickRecord | None = self.last_click
        if last is None or last.click_count != 1:
            return False
        return (
            now - last.timestamp < self.window_seconds
            and abs(point.x - last.x) < self.distance_px
            and abs(point.y - last.y) < self.distance_px
        )
