"""보상 쿨다운 판정"""

from datetime import datetime, timedelta
from typing import Optional


def cooldown_elapsed(
    last_reward: Optional[datetime], now: datetime, period: timedelta
) -> bool:
    """`now` 시점에 보상 후보가 될 수 있으면 True.

    보상 이력이 없는 유저는 항상 대상.
    """
    if last_reward is None:
        return True
    return now - last_reward >= period


def cooldown_remaining(
    last_reward: Optional[datetime], now: datetime, period: timedelta
) -> timedelta:
    if last_reward is None:
        return timedelta(0)
    return max(timedelta(0), last_reward + period - now)
