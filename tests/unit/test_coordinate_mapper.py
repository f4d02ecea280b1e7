"""Unit tests for local-to-logical coordinate mapping"""

from rvdrive.common.types import LogicalPoint, Position, Screen
from rvdrive.viewport.coordinate_mapper import (
    coordinate_round,
    logicalPoint_map,
    logicalScreen_get,
)


class TestLogicalPointMap:
    """Test logicalPoint_map scaling"""

    def test_half_size_display_center(self):
        """Test the center of a 640x360 surface maps to the logical center"""
        point = logicalPoint_map(Position(x=320, y=180), Screen(width=640, height=360))
        assert point == LogicalPoint(x=640, y=360)

    def test_identity_at_logical_size(self):
        """Test a 1280x720 surface maps one to one"""
        point = logicalPoint_map(Position(x=17, y=703), Screen(width=1280, height=720))
        assert point == LogicalPoint(x=17, y=703)

    def test_corners_stay_in_bounds(self):
        """Test surface corners map onto logical corners"""
        display = Screen(width=1000, height=600)
        assert logicalPoint_map(Position(x=0, y=0), display) == LogicalPoint(x=0, y=0)
        assert logicalPoint_map(Position(x=1000, y=600), display) == LogicalPoint(x=1280, y=720)

    def test_all_in_bounds_points_map_in_bounds(self):
        """Test every sampled point lands inside the logical viewport"""
        display = Screen(width=333, height=187)
        for x in range(0, 334, 37):
            for y in range(0, 188, 17):
                point = logicalPoint_map(Position(x=x, y=y), display)
                assert 0 <= point.x <= 1280
                assert 0 <= point.y <= 720

    def test_non_uniform_scaling(self):
        """Test axes scale independently"""
        point = logicalPoint_map(Position(x=100, y=100), Screen(width=640, height=720))
        assert point == LogicalPoint(x=200, y=100)

    def test_zero_display_is_unavailable(self):
        """Test an unmeasured surface yields no mapping"""
        assert logicalPoint_map(Position(x=10, y=10), Screen(width=0, height=0)) is None
        assert logicalPoint_map(Position(x=10, y=10), Screen(width=640, height=0)) is None

    def test_resize_takes_effect_immediately(self):
        """Test the same local point maps proportionally to the new size"""
        pointer = Position(x=320, y=180)
        before = logicalPoint_map(pointer, Screen(width=640, height=360))
        after = logicalPoint_map(pointer, Screen(width=1280, height=720))
        assert before == LogicalPoint(x=640, y=360)
        assert after == LogicalPoint(x=320, y=180)

    def test_custom_logical_space(self):
        """Test an explicit target space overrides the default"""
        point = logicalPoint_map(
            Position(x=50, y=50), Screen(width=100, height=100), Screen(width=10, height=20)
        )
        assert point == LogicalPoint(x=5, y=10)


class TestCoordinateRound:
    """Test rounding policy"""

    def test_halves_round_up(self):
        """Test .5 rounds away from the lower integer"""
        assert coordinate_round(0.5) == 1
        assert coordinate_round(1.5) == 2
        assert coordinate_round(2.5) == 3

    def test_nearest(self):
        """Test ordinary nearest rounding"""
        assert coordinate_round(2.49) == 2
        assert coordinate_round(2.51) == 3

    def test_logical_screen(self):
        """Test the default logical space"""
        assert logicalScreen_get() == Screen(width=1280, height=720)
