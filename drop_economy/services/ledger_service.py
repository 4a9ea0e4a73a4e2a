"""소유권 원장 Service - 어떤 드롭을 누가 소유하는지의 기준 데이터

Primitive(mint / transfer_ownership / mark_consumed)는 호출자 트랜잭션
안에서 실행되며 커밋하지 않는다. 각각 guarded UPDATE(또는 INSERT) 하나이므로
같은 드롭을 두고 경쟁하는 호출은 해당 row에서 직렬화된다.
진 쪽 UPDATE는 0 row에 매칭되어 typed error로 실패한다.

grant / gift는 완결 연산: 자체 트랜잭션, 커밋, 이벤트 발행.
"""

from __future__ import annotations

import random
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from drop_economy.core.economy.equip import strip_drops
from drop_economy.core.economy.errors import (
    AlreadyConsumed,
    DropNotFound,
    EquipConflict,
    OwnershipMismatch,
    UserNotFound,
    ValidationError,
)
from drop_economy.core.economy.models import DropInstance, EquipSlots
from drop_economy.core.economy.rarity import RandomSource, roll_pattern
from drop_economy.core.event_bus import EconomyEvent, EventBus
from drop_economy.core.event_types import EventTypes
from drop_economy.core.logging import get_logger
from drop_economy.db.database import conditional_update, unit_of_work
from drop_economy.db.models import DropModel, UserModel
from drop_economy.services.catalog_service import CatalogStore

logger = get_logger(__name__)


class OwnershipLedger:
    """드롭 소유권 primitive + gift/grant"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        catalog: CatalogStore,
        rng: Optional[RandomSource] = None,
    ):
        self._db = db
        self._bus = event_bus
        self._catalog = catalog
        self._rng = rng or random.Random()

    # === 조회 ===

    def get_drop(self, drop_id: int) -> Optional[DropInstance]:
        orm = self._fetch(drop_id)
        return self._drop_to_core(orm) if orm is not None else None

    def owner_of(self, drop_id: int) -> Optional[int]:
        drop = self.get_drop(drop_id)
        return drop.owner_id if drop is not None else None

    def drops_owned_by(
        self, owner_id: int, include_consumed: bool = False
    ) -> list[DropInstance]:
        stmt = select(DropModel).where(DropModel.owner_id == owner_id)
        if not include_consumed:
            stmt = stmt.where(DropModel.consumed.is_(False))
        rows = self._db.execute(stmt.order_by(DropModel.id)).scalars()
        return [self._drop_to_core(r) for r in rows]

    # === Primitive (트랜잭션은 호출자 소유) ===

    def mint(self, item_id: int, owner_id: int) -> DropInstance:
        """`owner_id`에게 새 패턴의 `item_id` 드롭 발행."""
        definition = self._catalog.get(item_id)
        if definition is None:
            raise ValidationError(f"Unknown item definition: {item_id}")

        orm = DropModel(
            owner_id=owner_id,
            item_id=item_id,
            pattern=roll_pattern(self._rng, definition.pattern_count),
            consumed=False,
        )
        self._db.add(orm)
        self._db.flush()

        drop = self._drop_to_core(orm)
        logger.debug(
            "드롭 %d 발행 (item=%d, pattern=%d) → user %d",
            drop.drop_id,
            item_id,
            drop.pattern,
            owner_id,
        )
        return drop

    def transfer_ownership(
        self, drop_id: int, expected_owner: int, new_owner: int
    ) -> None:
        """`expected_owner`가 미소모 상태로 보유 중일 때만 드롭 이전.

        이전 소유자의 장착 슬롯 중 이 드롭을 가리키는 것은 같은 트랜잭션에서 해제.
        """
        touched = conditional_update(
            self._db,
            update(DropModel)
            .where(
                DropModel.id == drop_id,
                DropModel.owner_id == expected_owner,
                DropModel.consumed.is_(False),
            )
            .values(owner_id=new_owner),
        )
        if touched == 0:
            raise self._diagnose(drop_id, expected_owner)

        self._release_equipped(expected_owner, [drop_id])
        logger.debug("드롭 %d 이전: user %d → user %d", drop_id, expected_owner, new_owner)

    def mark_consumed(self, drop_id: int, expected_owner: Optional[int] = None) -> None:
        """consumed false → true. 선택적으로 소유자도 확인."""
        stmt = update(DropModel).where(
            DropModel.id == drop_id, DropModel.consumed.is_(False)
        )
        if expected_owner is not None:
            stmt = stmt.where(DropModel.owner_id == expected_owner)

        touched = conditional_update(self._db, stmt.values(consumed=True))
        if touched == 0:
            raise self._diagnose(drop_id, expected_owner)
        logger.debug("드롭 %d 소모", drop_id)

    def assert_owned(self, drop_id: int, owner_id: int) -> None:
        """Guarded no-op write. 소유권을 증명하고 트랜잭션 끝까지 드롭 row를 잡아둔다."""
        touched = conditional_update(
            self._db,
            update(DropModel)
            .where(
                DropModel.id == drop_id,
                DropModel.owner_id == owner_id,
                DropModel.consumed.is_(False),
            )
            .values(owner_id=DropModel.owner_id),
        )
        if touched == 0:
            raise self._diagnose(drop_id, owner_id)

    # === 완결 연산 ===

    def grant(self, item_id: int, owner_id: int) -> DropInstance:
        """보상 경로 밖 발행 (카탈로그 관리, 프로모션)."""
        with unit_of_work(self._db):
            if self._db.get(UserModel, owner_id) is None:
                raise UserNotFound(owner_id)
            drop = self.mint(item_id, owner_id)

        self._bus.emit(
            EconomyEvent(
                event_type=EventTypes.ITEM_MINTED,
                data={
                    "drop_id": drop.drop_id,
                    "item_id": drop.item_id,
                    "owner_id": drop.owner_id,
                    "pattern": drop.pattern,
                },
                source="ledger_service",
            )
        )
        logger.info("드롭 %d 지급 (item=%d) → user %d", drop.drop_id, item_id, owner_id)
        return drop

    def gift(self, drop_id: int, from_user: int, to_user: int) -> DropInstance:
        if from_user == to_user:
            raise ValidationError("Cannot gift a drop to yourself")

        with unit_of_work(self._db):
            if self._db.get(UserModel, to_user) is None:
                raise UserNotFound(to_user)
            self.transfer_ownership(drop_id, from_user, to_user)
            drop = self._drop_to_core(self._fetch(drop_id))

        self._bus.emit(
            EconomyEvent(
                event_type=EventTypes.ITEM_TRANSFERRED,
                data={
                    "drop_id": drop_id,
                    "from_id": from_user,
                    "to_id": to_user,
                    "reason": "gift",
                },
                source="ledger_service",
            )
        )
        logger.info("드롭 %d 선물: user %d → user %d", drop_id, from_user, to_user)
        return drop

    # === 헬퍼 ===

    def _fetch(self, drop_id: int) -> Optional[DropModel]:
        return self._db.get(DropModel, drop_id)

    def _diagnose(self, drop_id: int, expected_owner: Optional[int]) -> Exception:
        """`drop_id` guarded write가 0 row였던 원인 판별."""
        orm = self._fetch(drop_id)
        if orm is None:
            return DropNotFound(drop_id)
        if expected_owner is not None and orm.owner_id != expected_owner:
            return OwnershipMismatch(drop_id, expected_owner, orm.owner_id)
        return AlreadyConsumed(drop_id)

    def _release_equipped(self, owner_id: int, drop_ids: list[int]) -> None:
        """인벤토리를 떠나는 드롭을 가리키는 소유자 슬롯 해제."""
        user = self._db.get(UserModel, owner_id)
        if user is None:
            return
        before = EquipSlots(
            profile_pic=user.equip_profile_pic,
            background=user.equip_background,
            badges=tuple(user.equip_badges or ()),
        )
        after = strip_drops(before, drop_ids)
        if after == before:
            return

        touched = conditional_update(
            self._db,
            update(UserModel)
            .where(
                UserModel.id == owner_id,
                UserModel.slots_version == user.slots_version,
            )
            .values(
                equip_profile_pic=after.profile_pic,
                equip_background=after.background,
                equip_badges=list(after.badges),
                slots_version=UserModel.slots_version + 1,
            ),
        )
        if touched == 0:
            raise EquipConflict(owner_id)
        logger.debug("이전으로 장착 해제: %s (user %d)", drop_ids, owner_id)

    def _drop_to_core(self, orm: DropModel) -> DropInstance:
        return DropInstance(
            drop_id=orm.id,
            owner_id=orm.owner_id,
            item_id=orm.item_id,
            pattern=orm.pattern,
            consumed=orm.consumed,
        )
