"""장착 Service - 프로필 사진, 배경, 배지 슬롯

슬롯은 slots_version과 함께 유저 row에 저장된다. 모든 쓰기는 그 version으로
보호되는 read-modify-write이며, 동시 쓰기가 있으면 UPDATE가 빗나가
호출자는 EquipConflict를 받는다.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from drop_economy.core.economy.equip import (
    DEFAULT_MAX_BADGES,
    clear_slot,
    equip_into,
    parse_slot,
    slot_accepts,
)
from drop_economy.core.economy.errors import (
    DropNotFound,
    EquipConflict,
    SlotKindMismatch,
    UserNotFound,
)
from drop_economy.core.economy.models import EquipSlots, SlotKind
from drop_economy.core.event_bus import EconomyEvent, EventBus
from drop_economy.core.event_types import EventTypes
from drop_economy.core.logging import get_logger
from drop_economy.db.database import conditional_update, unit_of_work
from drop_economy.db.models import DropModel, UserModel
from drop_economy.services.catalog_service import CatalogStore
from drop_economy.services.ledger_service import OwnershipLedger

logger = get_logger(__name__)


class EquipService:
    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        catalog: CatalogStore,
        max_badges: int = DEFAULT_MAX_BADGES,
        ledger: Optional[OwnershipLedger] = None,
    ):
        self._db = db
        self._bus = event_bus
        self._catalog = catalog
        self._max_badges = max_badges
        self._ledger = ledger or OwnershipLedger(db, event_bus, catalog)

    def slots_of(self, user_id: int) -> EquipSlots:
        return self._slots_from(self._load_user(user_id))

    def equip(self, user_id: int, drop_id: int, slot: SlotKind | str) -> EquipSlots:
        slot = parse_slot(slot)

        with unit_of_work(self._db):
            user = self._load_user(user_id)
            version = user.slots_version
            before = self._slots_from(user)

            drop = self._db.get(DropModel, drop_id)
            if drop is None:
                raise DropNotFound(drop_id)
            definition = self._catalog.get(drop.item_id)
            # kind보다 소유권 먼저: 남의 드롭은 OwnershipMismatch
            self._ledger.assert_owned(drop_id, user_id)
            if definition is None or not slot_accepts(slot, definition.kind):
                kind = definition.kind.kind if definition else "unknown"
                raise SlotKindMismatch(drop_id, slot.value, kind)

            after = equip_into(before, slot, drop_id, self._max_badges, user_id)
            self._write_slots(user_id, version, after)

        self._bus.emit(
            EconomyEvent(
                event_type=EventTypes.ITEM_EQUIPPED,
                data={"user_id": user_id, "drop_id": drop_id, "slot": slot.value},
                source="equip_service",
            )
        )
        logger.info("장착: user %d 드롭 %d → %s", user_id, drop_id, slot.value)
        return after

    def unequip(
        self, user_id: int, slot: SlotKind | str, drop_id: Optional[int] = None
    ) -> EquipSlots:
        """슬롯 비우기. 배지는 `drop_id`로 하나만 제거, None이면 전부 해제."""
        slot = parse_slot(slot)

        with unit_of_work(self._db):
            user = self._load_user(user_id)
            version = user.slots_version
            before = self._slots_from(user)
            after = clear_slot(before, slot, drop_id)
            if after != before:
                self._write_slots(user_id, version, after)

        if after != before:
            removed = sorted(before.equipped_ids() - after.equipped_ids())
            self._bus.emit(
                EconomyEvent(
                    event_type=EventTypes.ITEM_UNEQUIPPED,
                    data={"user_id": user_id, "drop_ids": removed, "slot": slot.value},
                    source="equip_service",
                )
            )
            logger.info("장착 해제: user %d %s ← %s", user_id, removed, slot.value)
        return after

    # === 헬퍼 ===

    def _load_user(self, user_id: int) -> UserModel:
        user = self._db.get(UserModel, user_id, populate_existing=True)
        if user is None:
            raise UserNotFound(user_id)
        return user

    def _write_slots(self, user_id: int, version: int, slots: EquipSlots) -> None:
        touched = conditional_update(
            self._db,
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.slots_version == version)
            .values(
                equip_profile_pic=slots.profile_pic,
                equip_background=slots.background,
                equip_badges=list(slots.badges),
                slots_version=version + 1,
            ),
        )
        if touched == 0:
            raise EquipConflict(user_id)

    @staticmethod
    def _slots_from(user: UserModel) -> EquipSlots:
        return EquipSlots(
            profile_pic=user.equip_profile_pic,
            background=user.equip_background,
            badges=tuple(user.equip_badges or ()),
        )
