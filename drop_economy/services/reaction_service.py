"""리액션 Service - 리액션 드롭 소모 + 작성자 경험치 변경

리액션 1회 = 트랜잭션 1개: 드롭 소모, 게시글 리액션 목록에 추가, 작성자
경험치 조정. 경험치는 SQL에서 계산하므로 한 작성자에 대한 동시 리액션도
delta를 잃지 않는다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from drop_economy.core.economy.errors import (
    AlreadyConsumed,
    DropNotFound,
    NotAReaction,
    OwnershipMismatch,
    PostNotFound,
    SelfReaction,
    UserNotFound,
)
from drop_economy.core.economy.experience import (
    DEFAULT_MEDIA_LEVEL,
    LevelInfo,
    level_info,
)
from drop_economy.core.economy.experience import can_attach_media as _media_allowed
from drop_economy.core.economy.models import Reaction, utcnow
from drop_economy.core.event_bus import EconomyEvent, EventBus
from drop_economy.core.event_types import EventTypes
from drop_economy.core.logging import get_logger
from drop_economy.db.database import conditional_update, unit_of_work
from drop_economy.db.models import DropModel, PostModel, PostReactionModel, UserModel
from drop_economy.services.catalog_service import CatalogStore
from drop_economy.services.ledger_service import OwnershipLedger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReactionResult:
    post_id: int
    drop_id: int
    reactor_id: int
    author_id: int
    experience_delta: int
    experience: int  # 작성자의 커밋된 경험치
    level: int


class ReactionService:
    """리액션 소모 + 경험치/레벨 조회"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        catalog: CatalogStore,
        ledger: Optional[OwnershipLedger] = None,
        media_level_threshold: int = DEFAULT_MEDIA_LEVEL,
    ):
        self._db = db
        self._bus = event_bus
        self._catalog = catalog
        self._ledger = ledger or OwnershipLedger(db, event_bus, catalog)
        self._media_level = media_level_threshold

    def apply_reaction(
        self, reaction_drop_id: int, acting_user: int, target_post_id: int
    ) -> ReactionResult:
        """`target_post_id`에 `reaction_drop_id` 사용.

        검사 순서: 드롭 존재 → 소유 → 미소모 → 리액션 아이템
        → 게시글 존재 → 본인 게시글 아님.
        """
        with unit_of_work(self._db):
            drop = self._db.get(DropModel, reaction_drop_id)
            if drop is None:
                raise DropNotFound(reaction_drop_id)
            if drop.owner_id != acting_user:
                raise OwnershipMismatch(reaction_drop_id, acting_user, drop.owner_id)
            if drop.consumed:
                raise AlreadyConsumed(reaction_drop_id)

            definition = self._catalog.get(drop.item_id)
            if definition is None or not isinstance(definition.kind, Reaction):
                raise NotAReaction(reaction_drop_id)
            delta = definition.kind.experience_delta

            post = self._db.get(PostModel, target_post_id)
            if post is None:
                raise PostNotFound(target_post_id)
            author_id = post.author_id
            if author_id == acting_user:
                raise SelfReaction(acting_user, target_post_id)

            # 동시 리액션이나 이전이 먼저 처리됐으면 예외
            self._ledger.mark_consumed(reaction_drop_id, expected_owner=acting_user)

            self._db.add(
                PostReactionModel(
                    post_id=target_post_id,
                    drop_id=reaction_drop_id,
                    reactor_id=acting_user,
                    applied_at=utcnow(),
                )
            )
            self._db.flush()

            new_experience = UserModel.experience + delta
            conditional_update(
                self._db,
                update(UserModel)
                .where(UserModel.id == author_id)
                .values(
                    experience=case((new_experience < 0, 0), else_=new_experience)
                ),
            )
            experience = self._db.get(UserModel, author_id).experience

        info = level_info(experience)
        result = ReactionResult(
            post_id=target_post_id,
            drop_id=reaction_drop_id,
            reactor_id=acting_user,
            author_id=author_id,
            experience_delta=delta,
            experience=experience,
            level=info.level,
        )

        self._bus.emit(
            EconomyEvent(
                event_type=EventTypes.REACTION_COMMITTED,
                data={
                    "post_id": result.post_id,
                    "drop_id": result.drop_id,
                    "reactor_id": result.reactor_id,
                    "author_id": result.author_id,
                    "experience_delta": result.experience_delta,
                    "experience": result.experience,
                    "level": result.level,
                },
                source="reaction_service",
            )
        )
        logger.info(
            "리액션 드롭 %d → 게시글 %d: user %d %+d xp → %d (level %d)",
            reaction_drop_id,
            target_post_id,
            author_id,
            delta,
            experience,
            info.level,
        )
        return result

    # === 조회 ===

    def reactions_on(self, post_id: int) -> list[int]:
        """게시글에 적용된 드롭 id 목록 (적용 순)."""
        if self._db.get(PostModel, post_id) is None:
            raise PostNotFound(post_id)
        stmt = (
            select(PostReactionModel.drop_id)
            .where(PostReactionModel.post_id == post_id)
            .order_by(PostReactionModel.id)
        )
        return list(self._db.execute(stmt).scalars())

    def level_of(self, user_id: int) -> LevelInfo:
        return level_info(self._experience_of(user_id))

    def can_attach_media(self, user_id: int) -> bool:
        return _media_allowed(self._experience_of(user_id), self._media_level)

    def _experience_of(self, user_id: int) -> int:
        user = self._db.get(UserModel, user_id, populate_existing=True)
        if user is None:
            raise UserNotFound(user_id)
        return user.experience
