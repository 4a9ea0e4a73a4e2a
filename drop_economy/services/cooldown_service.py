"""보상 쿨다운 Tracker - 유저별 마지막 보상 시각

claim()은 호출자 트랜잭션 안에서 실행. UPDATE는 직전에 읽은 timestamp를
키로 삼으므로 같은 유저의 두 게시글이 같은 구간을 동시에 차지할 수 없다.
"""

from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from drop_economy.core.economy.cooldown import cooldown_elapsed, cooldown_remaining
from drop_economy.core.economy.errors import CooldownNotElapsed, UserNotFound
from drop_economy.core.logging import get_logger
from drop_economy.db.database import conditional_update
from drop_economy.db.models import UserModel

logger = get_logger(__name__)


class RewardCooldownTracker:
    def __init__(self, db: Session, period: timedelta):
        self._db = db
        self._period = period

    @property
    def period(self) -> timedelta:
        return self._period

    def is_eligible(self, user_id: int, now: datetime) -> bool:
        return cooldown_elapsed(self._last_reward(user_id), now, self._period)

    def remaining(self, user_id: int, now: datetime) -> timedelta:
        return cooldown_remaining(self._last_reward(user_id), now, self._period)

    def claim(self, user_id: int, now: datetime) -> None:
        """last_reward를 `now`로 갱신. 불가하면 CooldownNotElapsed."""
        observed = self._last_reward(user_id)
        if not cooldown_elapsed(observed, now, self._period):
            raise CooldownNotElapsed(user_id)

        stmt = update(UserModel).where(UserModel.id == user_id)
        if observed is None:
            stmt = stmt.where(UserModel.last_reward.is_(None))
        else:
            stmt = stmt.where(UserModel.last_reward == observed)

        touched = conditional_update(self._db, stmt.values(last_reward=now))
        if touched == 0:
            # 그 사이 같은 유저의 다른 claim이 커밋됨
            logger.debug("쿨다운 claim 경쟁 패배: user %d", user_id)
            raise CooldownNotElapsed(user_id)
        logger.debug("쿨다운 claim: user %d at %s", user_id, now)

    def _last_reward(self, user_id: int) -> datetime | None:
        user = self._db.get(UserModel, user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user.last_reward
