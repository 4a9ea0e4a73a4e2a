"""희귀도 가중치 - 순수 Python

보상 1회당 등급 확률:
    legendary   0.01%
    ultra_rare  0.1%
    rare        1%
    uncommon    15%
    common      나머지 (~83.89%)
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from typing import Optional, Protocol, Sequence, TypeVar

from .models import RARITY_ORDER, Rarity

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RARE_TIER_WEIGHTS: dict[Rarity, float] = {
    Rarity.LEGENDARY: 0.0001,
    Rarity.ULTRA_RARE: 0.001,
    Rarity.RARE: 0.01,
    Rarity.UNCOMMON: 0.15,
}

RARITY_WEIGHTS: dict[Rarity, float] = {
    Rarity.COMMON: 1.0 - sum(_RARE_TIER_WEIGHTS.values()),
    **_RARE_TIER_WEIGHTS,
}

DEFAULT_DROP_CHANCE = 0.15


class RandomSource(Protocol):
    """이코노미가 쓰는 random.Random 부분 인터페이스."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...

    def randrange(self, stop: int) -> int: ...


def roll_drop_chance(rng: RandomSource, chance: float = DEFAULT_DROP_CHANCE) -> bool:
    """대상 게시글이 보상을 받을지 여부."""
    return rng.random() < chance


def roll_rarity(rng: RandomSource) -> Rarity:
    """등급 추첨. 가장 희귀한 등급부터 순회해 등급마다 [0, 1)의 고정 구간을 가짐."""
    roll = rng.random()
    threshold = 0.0
    for rarity in reversed(RARITY_ORDER[1:]):
        threshold += RARITY_WEIGHTS[rarity]
        if roll < threshold:
            return rarity
    return Rarity.COMMON


def fallback_order(rarity: Rarity) -> list[Rarity]:
    """추첨 등급 → 한 단계씩 덜 희귀한 등급 → common 순서."""
    return list(reversed(RARITY_ORDER[: rarity.rank + 1]))


def roll_pattern(rng: RandomSource, pattern_count: int) -> int:
    """[0, pattern_count) 균등 패턴 인덱스."""
    return rng.randrange(pattern_count)


def choose_uniform(rng: RandomSource, candidates: Sequence[T]) -> Optional[T]:
    if not candidates:
        return None
    return rng.choice(candidates)


def empirical_rarity_odds(
    rolls: int, rng: Optional[RandomSource] = None
) -> dict[Rarity, float]:
    """`rolls`회 추첨에서 관측된 등급별 비율."""
    rng = rng or random.Random()
    tally = Counter(roll_rarity(rng) for _ in range(rolls))
    odds = {rarity: tally.get(rarity, 0) / rolls for rarity in RARITY_ORDER}
    logger.debug("희귀도 실측 확률 (%d회): %s", rolls, odds)
    return odds
