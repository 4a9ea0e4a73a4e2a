"""거래 Service - 두 유저 간 협상 교환

accept는 PROPOSED → ACCEPTED 상태 UPDATE로 게이트된다. UPDATE가 row를
건드린 호출자만 아이템 이동으로 진행하며, 모든 아이템은 같은 트랜잭션에서
guarded 원장 이전으로 움직인다. 아이템 하나라도 stale이면 accept 전체가
롤백되고 제안은 PROPOSED로 남는다.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from drop_economy.core.economy.errors import (
    AlreadyConsumed,
    DropNotFound,
    OfferNotFound,
    OfferNotPending,
    OwnershipError,
    OwnershipMismatch,
    TradeInvalid,
    UserNotFound,
)
from drop_economy.core.economy.models import OfferStatus, TradeOffer, utcnow
from drop_economy.core.economy.trade import (
    DEFAULT_NOTE_MAX_LENGTH,
    OfferAction,
    authorize,
    next_status,
    validate_proposal,
)
from drop_economy.core.event_bus import EconomyEvent, EventBus
from drop_economy.core.event_types import EventTypes
from drop_economy.core.logging import get_logger
from drop_economy.db.database import conditional_update, unit_of_work
from drop_economy.db.models import DropModel, TradeOfferModel, UserModel
from drop_economy.services.ledger_service import OwnershipLedger

logger = get_logger(__name__)

_RESOLVED_EVENT = {
    OfferAction.ACCEPT: EventTypes.TRADE_ACCEPTED,
    OfferAction.DECLINE: EventTypes.TRADE_DECLINED,
    OfferAction.RESCIND: EventTypes.TRADE_RESCINDED,
}


class TradeService:
    """제안 생명주기: propose → accept | decline | rescind"""

    def __init__(
        self,
        db: Session,
        event_bus: EventBus,
        ledger: OwnershipLedger,
        note_max_length: int = DEFAULT_NOTE_MAX_LENGTH,
    ):
        self._db = db
        self._bus = event_bus
        self._ledger = ledger
        self._note_max_length = note_max_length

    # === 제안 ===

    def propose(
        self,
        sender_id: int,
        receiver_id: int,
        sender_items: Iterable[int],
        receiver_items: Iterable[int],
        note: Optional[str] = None,
    ) -> TradeOffer:
        offered, requested, note = validate_proposal(
            sender_id,
            receiver_id,
            sender_items,
            receiver_items,
            note,
            self._note_max_length,
        )

        with unit_of_work(self._db):
            for user_id in (sender_id, receiver_id):
                if self._db.get(UserModel, user_id) is None:
                    raise UserNotFound(user_id)
            self._check_holdings(sender_id, offered)
            self._check_holdings(receiver_id, requested)

            orm = TradeOfferModel(
                sender_id=sender_id,
                sender_items=list(offered),
                receiver_id=receiver_id,
                receiver_items=list(requested),
                note=note,
                status=OfferStatus.PROPOSED.value,
                created_at=utcnow(),
            )
            self._db.add(orm)
            self._db.flush()
            offer = self._offer_to_core(orm)

        self._bus.emit(
            EconomyEvent(
                event_type=EventTypes.TRADE_PROPOSED,
                data=self._event_data(offer),
                source="trade_service",
            )
        )
        logger.info(
            "거래 제안 %d: user %d가 %s 제시 → user %d에게 %s 요청",
            offer.offer_id,
            sender_id,
            list(offered),
            receiver_id,
            list(requested),
        )
        return offer

    # === 처리 ===

    def accept(self, offer_id: int, acting_user: int) -> TradeOffer:
        return self._resolve(offer_id, acting_user, OfferAction.ACCEPT)

    def decline(self, offer_id: int, acting_user: int) -> TradeOffer:
        return self._resolve(offer_id, acting_user, OfferAction.DECLINE)

    def rescind(self, offer_id: int, acting_user: int) -> TradeOffer:
        return self._resolve(offer_id, acting_user, OfferAction.RESCIND)

    def _resolve(
        self, offer_id: int, acting_user: int, action: OfferAction
    ) -> TradeOffer:
        with unit_of_work(self._db):
            current = self._load(offer_id)
            authorize(current, acting_user, action)
            target = next_status(offer_id, current.status, action)

            touched = conditional_update(
                self._db,
                update(TradeOfferModel)
                .where(
                    TradeOfferModel.id == offer_id,
                    TradeOfferModel.status == OfferStatus.PROPOSED.value,
                )
                .values(status=target.value, resolved_at=utcnow()),
            )
            if touched == 0:
                raise OfferNotPending(offer_id, self._load(offer_id).status.value)

            if action is OfferAction.ACCEPT:
                self._swap(current)

            resolved = self._load(offer_id)

        self._bus.emit(
            EconomyEvent(
                event_type=_RESOLVED_EVENT[action],
                data=self._event_data(resolved),
                source="trade_service",
            )
        )
        logger.info(
            "거래 제안 %d %s (user %d)", offer_id, resolved.status.value, acting_user
        )
        return resolved

    def _swap(self, offer: TradeOffer) -> None:
        legs = [
            (offer.sender_items, offer.sender_id, offer.receiver_id),
            (offer.receiver_items, offer.receiver_id, offer.sender_id),
        ]
        for drop_ids, giver, taker in legs:
            for drop_id in drop_ids:
                try:
                    self._ledger.transfer_ownership(drop_id, giver, taker)
                except OwnershipError as e:
                    logger.warning(
                        "거래 제안 %d 무효, 드롭 %d: %s",
                        offer.offer_id,
                        drop_id,
                        e.message,
                    )
                    raise TradeInvalid(offer.offer_id, drop_id) from e

    # === 조회 ===

    def get_offer(self, offer_id: int) -> Optional[TradeOffer]:
        orm = self._db.get(TradeOfferModel, offer_id)
        return self._offer_to_core(orm) if orm is not None else None

    def incoming_offers(
        self, user_id: int, pending_only: bool = True
    ) -> list[TradeOffer]:
        return self._list(TradeOfferModel.receiver_id == user_id, pending_only)

    def outgoing_offers(
        self, user_id: int, pending_only: bool = True
    ) -> list[TradeOffer]:
        return self._list(TradeOfferModel.sender_id == user_id, pending_only)

    def count_incoming(self, user_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(TradeOfferModel)
            .where(
                TradeOfferModel.receiver_id == user_id,
                TradeOfferModel.status == OfferStatus.PROPOSED.value,
            )
        )
        return self._db.scalar(stmt)

    # === 헬퍼 ===

    def _list(self, criterion, pending_only: bool) -> list[TradeOffer]:
        stmt = select(TradeOfferModel).where(criterion)
        if pending_only:
            stmt = stmt.where(TradeOfferModel.status == OfferStatus.PROPOSED.value)
        rows = self._db.execute(stmt.order_by(TradeOfferModel.id.desc())).scalars()
        return [self._offer_to_core(r) for r in rows]

    def _load(self, offer_id: int) -> TradeOffer:
        orm = self._db.get(TradeOfferModel, offer_id, populate_existing=True)
        if orm is None:
            raise OfferNotFound(offer_id)
        return self._offer_to_core(orm)

    def _check_holdings(self, owner_id: int, drop_ids: tuple[int, ...]) -> None:
        if not drop_ids:
            return
        rows = self._db.execute(
            select(DropModel).where(DropModel.id.in_(drop_ids))
        ).scalars()
        found = {r.id: r for r in rows}
        for drop_id in drop_ids:
            drop = found.get(drop_id)
            if drop is None:
                raise DropNotFound(drop_id)
            if drop.owner_id != owner_id:
                raise OwnershipMismatch(drop_id, owner_id, drop.owner_id)
            if drop.consumed:
                raise AlreadyConsumed(drop_id)

    @staticmethod
    def _event_data(offer: TradeOffer) -> dict:
        return {
            "offer_id": offer.offer_id,
            "sender_id": offer.sender_id,
            "receiver_id": offer.receiver_id,
            "sender_items": list(offer.sender_items),
            "receiver_items": list(offer.receiver_items),
            "status": offer.status.value,
        }

    def _offer_to_core(self, orm: TradeOfferModel) -> TradeOffer:
        return TradeOffer(
            offer_id=orm.id,
            sender_id=orm.sender_id,
            receiver_id=orm.receiver_id,
            sender_items=tuple(orm.sender_items),
            receiver_items=tuple(orm.receiver_items),
            status=OfferStatus(orm.status),
            note=orm.note,
            created_at=orm.created_at,
            resolved_at=orm.resolved_at,
        )
