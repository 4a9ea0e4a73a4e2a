"""장착 슬롯 규칙 - 순수 Python"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from .errors import SlotFull, ValidationError
from .models import Avatar, Background, Badge, EquipSlots, ItemKind, SlotKind

DEFAULT_MAX_BADGES = 10

_SLOT_KIND: dict[SlotKind, type] = {
    SlotKind.PROFILE_PIC: Avatar,
    SlotKind.BACKGROUND: Background,
    SlotKind.BADGE: Badge,
}


def parse_slot(value: SlotKind | str) -> SlotKind:
    try:
        return SlotKind(value)
    except ValueError:
        raise ValidationError(f"Unknown equip slot: {value!r}") from None


def slot_accepts(slot: SlotKind, kind: ItemKind) -> bool:
    return isinstance(kind, _SLOT_KIND[slot])


def add_badge(
    badges: tuple[int, ...], drop_id: int, capacity: int, user_id: int
) -> tuple[int, ...]:
    """배지 추가. 이미 장착된 배지 재장착은 no-op."""
    if drop_id in badges:
        return badges
    if len(badges) >= capacity:
        raise SlotFull(user_id, capacity)
    return badges + (drop_id,)


def remove_badge(badges: tuple[int, ...], drop_id: int) -> tuple[int, ...]:
    return tuple(b for b in badges if b != drop_id)


def equip_into(
    slots: EquipSlots, slot: SlotKind, drop_id: int, capacity: int, user_id: int
) -> EquipSlots:
    if slot is SlotKind.PROFILE_PIC:
        return replace(slots, profile_pic=drop_id)
    if slot is SlotKind.BACKGROUND:
        return replace(slots, background=drop_id)
    return replace(slots, badges=add_badge(slots.badges, drop_id, capacity, user_id))


def clear_slot(
    slots: EquipSlots, slot: SlotKind, drop_id: int | None = None
) -> EquipSlots:
    """슬롯 비우기. 배지는 `drop_id` 지정 시 해당 배지만 제거."""
    if slot is SlotKind.PROFILE_PIC:
        return replace(slots, profile_pic=None)
    if slot is SlotKind.BACKGROUND:
        return replace(slots, background=None)
    if drop_id is None:
        return replace(slots, badges=())
    return replace(slots, badges=remove_badge(slots.badges, drop_id))


def strip_drops(slots: EquipSlots, drop_ids: Iterable[int]) -> EquipSlots:
    """모든 슬롯에서 `drop_ids` 참조 제거."""
    gone = set(drop_ids)
    return EquipSlots(
        profile_pic=None if slots.profile_pic in gone else slots.profile_pic,
        background=None if slots.background in gone else slots.background,
        badges=tuple(b for b in slots.badges if b not in gone),
    )
