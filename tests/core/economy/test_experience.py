"""레벨 곡선 + 미디어 제한"""

import pytest

from drop_economy.core.economy.experience import (
    can_attach_media,
    experience_for_level,
    level_for,
    level_info,
)


class TestLevelCurve:
    @pytest.mark.parametrize(
        "level, start",
        [(1, 0), (2, 100), (3, 300), (4, 600), (5, 1000)],
    )
    def test_level_starts(self, level, start):
        assert experience_for_level(level) == start

    @pytest.mark.parametrize(
        "experience, level",
        [(0, 1), (99, 1), (100, 2), (299, 2), (300, 3), (599, 3), (600, 4), (1000, 5)],
    )
    def test_level_for(self, experience, level):
        assert level_for(experience) == level

    def test_monotonic(self):
        levels = [level_for(xp) for xp in range(0, 5000, 7)]
        assert levels == sorted(levels)

    def test_level_zero_rejected(self):
        with pytest.raises(ValueError):
            experience_for_level(0)

    def test_level_info(self):
        info = level_info(150)
        assert info.level == 2
        assert info.level_start == 100
        assert info.next_level_at == 300
        assert info.progress == pytest.approx(0.25)


class TestMediaGate:
    def test_below_threshold(self):
        assert can_attach_media(299, 3) is False

    def test_at_threshold(self):
        assert can_attach_media(300, 3) is True
