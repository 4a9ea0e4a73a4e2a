"""장착 슬롯: kind 매칭, 소유권, 용량, version guard"""

import pytest
from sqlalchemy import update

from drop_economy.core.economy.errors import (
    AlreadyConsumed,
    DropNotFound,
    EquipConflict,
    OwnershipMismatch,
    SlotFull,
    SlotKindMismatch,
    UserNotFound,
    ValidationError,
)
from drop_economy.core.economy.models import EquipSlots, SlotKind
from drop_economy.core.event_types import EventTypes
from drop_economy.db.models import UserModel


class TestEquip:
    def test_equip_each_slot(self, services, users, give, events):
        alice = users["alice"]
        badge = give("early_bird", alice)
        avatar = give("tabby", alice)
        background = give("slate", alice)

        services.equip.equip(alice, badge.drop_id, "badge")
        services.equip.equip(alice, avatar.drop_id, SlotKind.PROFILE_PIC)
        slots = services.equip.equip(alice, background.drop_id, "background")

        assert slots == EquipSlots(
            profile_pic=avatar.drop_id,
            background=background.drop_id,
            badges=(badge.drop_id,),
        )
        assert services.equip.slots_of(alice) == slots
        equipped = [e for e in events if e.event_type == EventTypes.ITEM_EQUIPPED]
        assert [e.data["slot"] for e in equipped] == [
            "badge",
            "profile_pic",
            "background",
        ]

    def test_replace_profile_pic(self, services, users, give):
        alice = users["alice"]
        first, second = give("tabby", alice), give("tabby", alice)
        services.equip.equip(alice, first.drop_id, "profile_pic")
        slots = services.equip.equip(alice, second.drop_id, "profile_pic")
        assert slots.profile_pic == second.drop_id

    def test_kind_mismatch(self, services, users, give):
        avatar = give("tabby", users["alice"])
        with pytest.raises(SlotKindMismatch) as exc:
            services.equip.equip(users["alice"], avatar.drop_id, "badge")
        assert isinstance(exc.value, ValidationError)
        assert services.equip.slots_of(users["alice"]) == EquipSlots()

    def test_reaction_fits_nowhere(self, services, users, give):
        reaction = give("thumbs_up", users["alice"])
        for slot in SlotKind:
            with pytest.raises(SlotKindMismatch):
                services.equip.equip(users["alice"], reaction.drop_id, slot)

    def test_not_owned(self, services, users, give):
        badge = give("early_bird", users["bob"])
        with pytest.raises(OwnershipMismatch):
            services.equip.equip(users["alice"], badge.drop_id, "badge")

    def test_consumed(self, services, db, users, give):
        drop = give("thumbs_up", users["alice"])
        services.ledger.mark_consumed(drop.drop_id)
        db.commit()
        with pytest.raises(AlreadyConsumed):
            services.equip.equip(users["alice"], drop.drop_id, "badge")

    def test_missing_drop(self, services, users):
        with pytest.raises(DropNotFound):
            services.equip.equip(users["alice"], 9999, "badge")

    def test_unknown_user_and_slot(self, services, users, give):
        badge = give("early_bird", users["alice"])
        with pytest.raises(UserNotFound):
            services.equip.equip(9999, badge.drop_id, "badge")
        with pytest.raises(ValidationError):
            services.equip.equip(users["alice"], badge.drop_id, "hat")


class TestBadgeCapacity:
    def test_slot_full(self, services, users, give):
        alice = users["alice"]
        badges = [give("early_bird", alice) for _ in range(4)]
        for badge in badges[:3]:
            services.equip.equip(alice, badge.drop_id, "badge")

        with pytest.raises(SlotFull) as exc:
            services.equip.equip(alice, badges[3].drop_id, "badge")

        assert exc.value.capacity == 3
        assert services.equip.slots_of(alice).badges == tuple(
            b.drop_id for b in badges[:3]
        )

    def test_re_equip_is_noop(self, services, users, give):
        badge = give("early_bird", users["alice"])
        services.equip.equip(users["alice"], badge.drop_id, "badge")
        slots = services.equip.equip(users["alice"], badge.drop_id, "badge")
        assert slots.badges == (badge.drop_id,)


class TestUnequip:
    def test_remove_one_badge(self, services, users, give, events):
        alice = users["alice"]
        a, b = give("early_bird", alice), give("necromancer", alice)
        services.equip.equip(alice, a.drop_id, "badge")
        services.equip.equip(alice, b.drop_id, "badge")

        slots = services.equip.unequip(alice, "badge", a.drop_id)

        assert slots.badges == (b.drop_id,)
        unequipped = [e for e in events if e.event_type == EventTypes.ITEM_UNEQUIPPED]
        assert unequipped[-1].data["drop_ids"] == [a.drop_id]

    def test_clear_all_badges(self, services, users, give):
        alice = users["alice"]
        for _ in range(2):
            services.equip.equip(alice, give("early_bird", alice).drop_id, "badge")
        assert services.equip.unequip(alice, "badge").badges == ()

    def test_empty_slot_is_quiet(self, services, users, events):
        slots = services.equip.unequip(users["alice"], "background")
        assert slots == EquipSlots()
        assert not any(e.event_type == EventTypes.ITEM_UNEQUIPPED for e in events)


class TestVersionGuard:
    def test_concurrent_slot_write_conflicts(self, services, db, users, give, monkeypatch):
        alice = users["alice"]
        badge = give("early_bird", alice)
        original = services.ledger.assert_owned

        def assert_owned_then_race(drop_id, owner_id):
            original(drop_id, owner_id)
            # 읽기와 쓰기 사이에 다른 writer가 slots_version을 올림
            db.execute(
                update(UserModel)
                .where(UserModel.id == owner_id)
                .values(slots_version=UserModel.slots_version + 1)
            )

        monkeypatch.setattr(services.ledger, "assert_owned", assert_owned_then_race)

        with pytest.raises(EquipConflict):
            services.equip.equip(alice, badge.drop_id, "badge")

        monkeypatch.undo()
        assert services.equip.slots_of(alice) == EquipSlots()
        assert db.get(UserModel, alice, populate_existing=True).slots_version == 0
