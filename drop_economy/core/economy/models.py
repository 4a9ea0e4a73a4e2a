"""이코노미 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


def utcnow() -> datetime:
    """naive UTC 현재 시각. 저장되는 모든 timestamp는 naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    ULTRA_RARE = "ultra_rare"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        """common 0 ~ legendary 4."""
        return RARITY_ORDER.index(self)


# 덜 희귀한 순
RARITY_ORDER: tuple[Rarity, ...] = (
    Rarity.COMMON,
    Rarity.UNCOMMON,
    Rarity.RARE,
    Rarity.ULTRA_RARE,
    Rarity.LEGENDARY,
)


# ── 아이템 종류 (closed variant) ──────────────────────────────


@dataclass(frozen=True)
class Badge:
    """장착 가능한 배지, payload 없음."""

    kind = "badge"


@dataclass(frozen=True)
class Reaction:
    """1회용 리액션. 게시글 작성자의 경험치를 움직임."""

    experience_delta: int

    kind = "reaction"


@dataclass(frozen=True)
class Background:
    """프로필 배경. pattern이 그라디언트 각도를 결정."""

    colors: tuple[str, ...]

    kind = "background"


@dataclass(frozen=True)
class Avatar:
    """프로필 사진."""

    asset: str

    kind = "avatar"


ItemKind = Union[Badge, Reaction, Background, Avatar]

DEFAULT_PATTERN_COUNT = 65536


@dataclass(frozen=True)
class ItemDefinition:
    """카탈로그 항목. 저장소에 있는 `available` 외에는 불변."""

    item_id: int
    name: str
    description: str
    rarity: Rarity
    kind: ItemKind
    available: bool = True
    attributes: dict[str, Any] = field(default_factory=dict)
    pattern_count: int = DEFAULT_PATTERN_COUNT


@dataclass(frozen=True)
class DropInstance:
    """발행되어 소유된 ItemDefinition 인스턴스."""

    drop_id: int
    owner_id: int
    item_id: int
    pattern: int
    consumed: bool = False


class SlotKind(str, Enum):
    PROFILE_PIC = "profile_pic"
    BACKGROUND = "background"
    BADGE = "badge"


@dataclass(frozen=True)
class EquipSlots:
    profile_pic: Optional[int] = None
    background: Optional[int] = None
    badges: tuple[int, ...] = ()

    def equipped_ids(self) -> set[int]:
        ids = set(self.badges)
        if self.profile_pic is not None:
            ids.add(self.profile_pic)
        if self.background is not None:
            ids.add(self.background)
        return ids


@dataclass(frozen=True)
class UserEconomy:
    """유저 레코드의 이코노미 필드."""

    user_id: int
    name: str
    experience: int = 0
    last_reward: Optional[datetime] = None
    slots: EquipSlots = field(default_factory=EquipSlots)


@dataclass(frozen=True)
class Post:
    post_id: int
    author_id: int
    posted_at: datetime
    body: str = ""
    thread_id: Optional[int] = None
    has_media: bool = False
    reward_drop_id: Optional[int] = None


class OfferStatus(str, Enum):
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    RESCINDED = "rescinded"

    @property
    def is_terminal(self) -> bool:
        return self is not OfferStatus.PROPOSED


@dataclass(frozen=True)
class TradeOffer:
    offer_id: int
    sender_id: int
    receiver_id: int
    sender_items: tuple[int, ...]
    receiver_items: tuple[int, ...]
    status: OfferStatus = OfferStatus.PROPOSED
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
