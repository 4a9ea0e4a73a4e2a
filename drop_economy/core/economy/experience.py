"""경험치 계산 + 레벨 곡선 - 순수 Python

레벨 n 시작 경험치 = LEVEL_STEP * n * (n - 1) / 2:
    level 1: 0, level 2: 100, level 3: 300, level 4: 600, ...
곡선이 단조 증가하므로 레벨은 저장하지 않고 항상 경험치에서 재계산.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

LEVEL_STEP = 100
DEFAULT_MEDIA_LEVEL = 3


@dataclass(frozen=True)
class LevelInfo:
    level: int
    experience: int
    level_start: int  # `level` 시작 경험치
    next_level_at: int

    @property
    def progress(self) -> float:
        """다음 레벨까지 진행률, 0.0 ~ 1.0."""
        span = self.next_level_at - self.level_start
        return (self.experience - self.level_start) / span


def experience_for_level(level: int) -> int:
    if level < 1:
        raise ValueError(f"Level must be >= 1, got {level}")
    return LEVEL_STEP * level * (level - 1) // 2


def level_for(experience: int) -> int:
    # level >= n  <=>  isqrt(1 + floor(8 * xp / STEP)) >= 2n - 1
    experience = max(0, experience)
    return (1 + math.isqrt(1 + 8 * experience // LEVEL_STEP)) // 2


def level_info(experience: int) -> LevelInfo:
    experience = max(0, experience)
    level = level_for(experience)
    return LevelInfo(
        level=level,
        experience=experience,
        level_start=experience_for_level(level),
        next_level_at=experience_for_level(level + 1),
    )


def can_attach_media(experience: int, threshold_level: int) -> bool:
    return level_for(experience) >= threshold_level
