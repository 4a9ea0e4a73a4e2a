"""희귀도 가중치 + 드롭 roll 헬퍼"""

from __future__ import annotations

import random

import pytest

from drop_economy.core.economy.models import RARITY_ORDER, Rarity
from drop_economy.core.economy.rarity import (
    RARITY_WEIGHTS,
    choose_uniform,
    empirical_rarity_odds,
    fallback_order,
    roll_drop_chance,
    roll_pattern,
    roll_rarity,
)


class _FixedRoll:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value

    def randrange(self, stop: int) -> int:
        return stop - 1

    def choice(self, seq):
        return seq[-1]


class TestWeights:
    def test_sum_to_one(self):
        assert sum(RARITY_WEIGHTS.values()) == pytest.approx(1.0)

    def test_strictly_decreasing_with_rarity(self):
        weights = [RARITY_WEIGHTS[r] for r in RARITY_ORDER]
        assert all(a > b for a, b in zip(weights, weights[1:]))

    def test_published_odds(self):
        assert RARITY_WEIGHTS[Rarity.LEGENDARY] == pytest.approx(0.0001)
        assert RARITY_WEIGHTS[Rarity.ULTRA_RARE] == pytest.approx(0.001)
        assert RARITY_WEIGHTS[Rarity.RARE] == pytest.approx(0.01)
        assert RARITY_WEIGHTS[Rarity.UNCOMMON] == pytest.approx(0.15)
        assert RARITY_WEIGHTS[Rarity.COMMON] == pytest.approx(0.8389)


class TestRollRarity:
    @pytest.mark.parametrize(
        "roll, expected",
        [
            (0.0, Rarity.LEGENDARY),
            (0.00005, Rarity.LEGENDARY),
            (0.0005, Rarity.ULTRA_RARE),
            (0.005, Rarity.RARE),
            (0.1, Rarity.UNCOMMON),
            (0.17, Rarity.COMMON),
            (0.999, Rarity.COMMON),
        ],
    )
    def test_slices(self, roll, expected):
        assert roll_rarity(_FixedRoll(roll)) is expected

    def test_empirical_odds_close_to_weights(self):
        odds = empirical_rarity_odds(50_000, random.Random(1234))
        assert odds[Rarity.COMMON] == pytest.approx(0.8389, abs=0.01)
        assert odds[Rarity.UNCOMMON] == pytest.approx(0.15, abs=0.01)
        assert sum(odds.values()) == pytest.approx(1.0)


class TestFallbackOrder:
    def test_legendary_walks_all_tiers(self):
        assert fallback_order(Rarity.LEGENDARY) == [
            Rarity.LEGENDARY,
            Rarity.ULTRA_RARE,
            Rarity.RARE,
            Rarity.UNCOMMON,
            Rarity.COMMON,
        ]

    def test_common_is_terminal(self):
        assert fallback_order(Rarity.COMMON) == [Rarity.COMMON]

    def test_rare(self):
        assert fallback_order(Rarity.RARE) == [
            Rarity.RARE,
            Rarity.UNCOMMON,
            Rarity.COMMON,
        ]


class TestSmallRolls:
    def test_drop_chance_gate(self):
        assert roll_drop_chance(_FixedRoll(0.1), 0.15) is True
        assert roll_drop_chance(_FixedRoll(0.15), 0.15) is False

    def test_pattern_in_range(self):
        rng = random.Random(7)
        assert all(0 <= roll_pattern(rng, 360) < 360 for _ in range(500))
        assert roll_pattern(_FixedRoll(0.0), 360) == 359

    def test_choose_uniform_empty(self):
        assert choose_uniform(_FixedRoll(0.0), []) is None

    def test_choose_uniform_picks_from_candidates(self):
        assert choose_uniform(_FixedRoll(0.0), ["a", "b"]) == "b"
