"""보상 Service - 게시글 작성 + 드롭 선택기

게시글과 보상은 한 단위: 쿨다운 claim, 드롭 발행, 게시글 row가 함께
커밋되거나 전부 롤백된다. 게시글이 존재하지 않는 드롭을 가리키는 일은 없다.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from drop_economy.core.economy.errors import (
    CooldownNotElapsed,
    LevelTooLow,
    UserNotFound,
)
from drop_economy.core.economy.experience import DEFAULT_MEDIA_LEVEL, level_for
from drop_economy.core.economy.models import DropInstance, Post, as_naive_utc
from drop_economy.core.economy.rarity import (
    DEFAULT_DROP_CHANCE,
    RandomSource,
    choose_uniform,
    fallback_order,
    roll_drop_chance,
    roll_rarity,
)
from drop_economy.core.event_bus import EconomyEvent, EventBus
from drop_economy.core.event_types import EventTypes
from drop_economy.core.logging import get_logger
from drop_economy.db.database import unit_of_work
from drop_economy.db.models import PostModel, UserModel
from drop_economy.services.catalog_service import CatalogStore
from drop_economy.services.cooldown_service import RewardCooldownTracker
from drop_economy.services.ledger_service import OwnershipLedger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PostResult:
    post: Post
    reward: Optional[DropInstance] = None


class RewardService:
    """게시글 생성 + 보상 추첨"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        catalog: CatalogStore,
        ledger: OwnershipLedger,
        cooldown: RewardCooldownTracker,
        rng: Optional[RandomSource] = None,
        drop_chance: float = DEFAULT_DROP_CHANCE,
        media_level_threshold: int = DEFAULT_MEDIA_LEVEL,
    ):
        self._db = db
        self._bus = event_bus
        self._catalog = catalog
        self._ledger = ledger
        self._cooldown = cooldown
        self._rng = rng or random.Random()
        self._drop_chance = drop_chance
        self._media_level = media_level_threshold

    # === 드롭 선택기 ===

    def select_reward(
        self, author_id: int, posted_at: datetime
    ) -> Optional[DropInstance]:
        """대상 게시글의 보상 추첨. 트랜잭션은 호출자 소유.

        작성자가 대상이면 드롭 여부와 무관하게 쿨다운이 갱신된다.
        """
        posted_at = as_naive_utc(posted_at)
        try:
            self._cooldown.claim(author_id, posted_at)
        except CooldownNotElapsed:
            logger.debug("보상 없음 (user %d): 쿨다운 중", author_id)
            return None

        if not roll_drop_chance(self._rng, self._drop_chance):
            logger.debug("보상 없음 (user %d): 드롭 확률 미달", author_id)
            return None

        sampled = roll_rarity(self._rng)
        for rarity in fallback_order(sampled):
            definition = choose_uniform(self._rng, self._catalog.list_available(rarity))
            if definition is None:
                continue
            if rarity is not sampled:
                logger.debug(
                    "%s 등급 비어 있음 → %s로 폴백", sampled.value, rarity.value
                )
            return self._ledger.mint(definition.item_id, author_id)

        logger.warning(
            "%s 이하 등급에 드롭 가능한 아이템 없음. user %d 보상 없음",
            sampled.value,
            author_id,
        )
        return None

    # === 게시글 ===

    def publish_post(
        self,
        author_id: int,
        posted_at: datetime,
        body: str = "",
        thread_id: Optional[int] = None,
        has_media: bool = False,
    ) -> PostResult:
        posted_at = as_naive_utc(posted_at)

        with unit_of_work(self._db):
            author = self._db.get(UserModel, author_id, populate_existing=True)
            if author is None:
                raise UserNotFound(author_id)
            if has_media:
                level = level_for(author.experience)
                if level < self._media_level:
                    raise LevelTooLow(author_id, level, self._media_level)

            reward = self.select_reward(author_id, posted_at)

            orm = PostModel(
                author_id=author_id,
                thread_id=thread_id,
                body=body,
                posted_at=posted_at,
                has_media=has_media,
                reward_drop_id=reward.drop_id if reward is not None else None,
            )
            self._db.add(orm)
            self._db.flush()
            post = self._post_to_core(orm)

        self._emit_committed(post, reward)
        if reward is not None:
            logger.info(
                "게시글 %d (user %d) 보상 드롭 %d (item=%d)",
                post.post_id,
                author_id,
                reward.drop_id,
                reward.item_id,
            )
        else:
            logger.info("게시글 %d 작성 (user %d)", post.post_id, author_id)
        return PostResult(post=post, reward=reward)

    def get_post(self, post_id: int) -> Optional[Post]:
        orm = self._db.get(PostModel, post_id)
        return self._post_to_core(orm) if orm is not None else None

    # === 헬퍼 ===

    def _emit_committed(self, post: Post, reward: Optional[DropInstance]) -> None:
        events = [
            EconomyEvent(
                event_type=EventTypes.POST_CREATED,
                data={
                    "post_id": post.post_id,
                    "author_id": post.author_id,
                    "thread_id": post.thread_id,
                    "has_media": post.has_media,
                    "reward_drop_id": post.reward_drop_id,
                },
                source="reward_service",
            )
        ]
        if reward is not None:
            definition = self._catalog.get(reward.item_id)
            events.append(
                EconomyEvent(
                    event_type=EventTypes.REWARD_COMMITTED,
                    data={
                        "post_id": post.post_id,
                        "drop_id": reward.drop_id,
                        "item_id": reward.item_id,
                        "owner_id": reward.owner_id,
                        "pattern": reward.pattern,
                        "rarity": definition.rarity.value if definition else None,
                    },
                    source="reward_service",
                )
            )
        self._bus.emit_all(events)

    def _post_to_core(self, orm: PostModel) -> Post:
        return Post(
            post_id=orm.id,
            author_id=orm.author_id,
            posted_at=orm.posted_at,
            body=orm.body,
            thread_id=orm.thread_id,
            has_media=orm.has_media,
            reward_drop_id=orm.reward_drop_id,
        )
