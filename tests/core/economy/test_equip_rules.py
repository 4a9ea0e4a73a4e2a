"""장착 슬롯 규칙 (순수)"""

import pytest

from drop_economy.core.economy.equip import (
    add_badge,
    clear_slot,
    equip_into,
    parse_slot,
    slot_accepts,
    strip_drops,
)
from drop_economy.core.economy.errors import SlotFull, ValidationError
from drop_economy.core.economy.models import (
    Avatar,
    Background,
    Badge,
    EquipSlots,
    Reaction,
    SlotKind,
)


class TestSlotAccepts:
    def test_matching_kinds(self):
        assert slot_accepts(SlotKind.BADGE, Badge())
        assert slot_accepts(SlotKind.PROFILE_PIC, Avatar("cat.png"))
        assert slot_accepts(SlotKind.BACKGROUND, Background(("#000",)))

    def test_mismatches(self):
        assert not slot_accepts(SlotKind.BADGE, Avatar("cat.png"))
        assert not slot_accepts(SlotKind.BACKGROUND, Badge())
        assert not slot_accepts(SlotKind.PROFILE_PIC, Reaction(5))

    def test_parse_slot(self):
        assert parse_slot("badge") is SlotKind.BADGE
        with pytest.raises(ValidationError):
            parse_slot("hat")


class TestBadges:
    def test_add_until_capacity(self):
        badges = ()
        for drop_id in (1, 2, 3):
            badges = add_badge(badges, drop_id, capacity=3, user_id=9)
        assert badges == (1, 2, 3)
        with pytest.raises(SlotFull) as exc:
            add_badge(badges, 4, capacity=3, user_id=9)
        assert exc.value.capacity == 3

    def test_add_is_idempotent(self):
        assert add_badge((1, 2), 2, capacity=2, user_id=9) == (1, 2)


class TestEquipInto:
    def test_replaces_single_slots(self):
        slots = EquipSlots(profile_pic=1)
        slots = equip_into(slots, SlotKind.PROFILE_PIC, 2, capacity=3, user_id=9)
        assert slots.profile_pic == 2

    def test_clear_one_badge(self):
        slots = EquipSlots(badges=(1, 2, 3))
        assert clear_slot(slots, SlotKind.BADGE, 2).badges == (1, 3)

    def test_clear_all_badges(self):
        slots = EquipSlots(background=5, badges=(1, 2))
        cleared = clear_slot(slots, SlotKind.BADGE)
        assert cleared.badges == ()
        assert cleared.background == 5

    def test_strip_drops(self):
        slots = EquipSlots(profile_pic=1, background=2, badges=(3, 4))
        stripped = strip_drops(slots, [1, 4])
        assert stripped == EquipSlots(profile_pic=None, background=2, badges=(3,))
        assert stripped.equipped_ids() == {2, 3}
