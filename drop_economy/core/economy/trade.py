"""거래 협상 상태 머신 - 순수 Python

    PROPOSED ──accept──▶ ACCEPTED
        │ ├──decline──▶ DECLINED
        │ └──rescind──▶ RESCINDED

PROPOSED만 다음 상태로 전이 가능. accept/decline은 수신자만,
rescind는 발신자만.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional

from .errors import OfferNotPending, ValidationError
from .models import OfferStatus, TradeOffer

logger = logging.getLogger(__name__)

DEFAULT_NOTE_MAX_LENGTH = 500


class OfferAction(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    RESCIND = "rescind"


TRANSITIONS: dict[OfferAction, OfferStatus] = {
    OfferAction.ACCEPT: OfferStatus.ACCEPTED,
    OfferAction.DECLINE: OfferStatus.DECLINED,
    OfferAction.RESCIND: OfferStatus.RESCINDED,
}


def next_status(offer_id: int, status: OfferStatus, action: OfferAction) -> OfferStatus:
    """`action` 이후 상태. 종료된 제안은 다시 움직이지 않음."""
    if status.is_terminal:
        raise OfferNotPending(offer_id, status.value)
    return TRANSITIONS[action]


def authorize(offer: TradeOffer, actor_id: int, action: OfferAction) -> None:
    if action is OfferAction.RESCIND:
        if actor_id != offer.sender_id:
            raise ValidationError(f"Only the sender can rescind offer {offer.offer_id}")
    elif actor_id != offer.receiver_id:
        raise ValidationError(
            f"Only the receiver can {action.value} offer {offer.offer_id}"
        )


def _normalize_items(items: Iterable[int], side: str) -> tuple[int, ...]:
    normalized = tuple(items)
    if any(not isinstance(i, int) or isinstance(i, bool) for i in normalized):
        raise ValidationError(f"{side} items must be drop ids")
    return normalized


def validate_proposal(
    sender_id: int,
    receiver_id: int,
    sender_items: Iterable[int],
    receiver_items: Iterable[int],
    note: Optional[str] = None,
    note_max_length: int = DEFAULT_NOTE_MAX_LENGTH,
) -> tuple[tuple[int, ...], tuple[int, ...], Optional[str]]:
    """원장 접근 전 형태 검증.

    Returns: 정규화된 (sender_items, receiver_items, note)
    """
    if sender_id == receiver_id:
        raise ValidationError("Cannot trade with yourself")

    offered = _normalize_items(sender_items, "Sender")
    requested = _normalize_items(receiver_items, "Receiver")
    if not offered and not requested:
        raise ValidationError("A trade offer must include at least one item")

    combined = offered + requested
    if len(set(combined)) != len(combined):
        raise ValidationError("A drop can only appear once in a trade offer")

    if note is not None:
        note = note.strip() or None
    if note is not None and len(note) > note_max_length:
        raise ValidationError(f"Trade note longer than {note_max_length} characters")

    return offered, requested, note
