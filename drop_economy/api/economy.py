"""Economy API endpoints.

얇은 어댑터: 요청마다 자체 세션으로 Service를 조립하고, 행위 유저는 요청
body로 전달되며, EconomyError 서브클래스는 api/errors.py 핸들러가 응답으로 변환.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from drop_economy.api.schemas import (
    DropInfo,
    EquipRequest,
    GiftRequest,
    ItemInfo,
    LevelInfoResponse,
    PostInfo,
    PostRequest,
    PostResponse,
    ReactionRequest,
    ReactionResponse,
    RegisterRequest,
    SlotsInfo,
    TradeActionRequest,
    TradeOfferInfo,
    TradeProposeRequest,
    UnequipRequest,
    UserInfo,
)
from drop_economy.core.economy.catalog import item_kind_to_json, parse_rarity
from drop_economy.core.economy.errors import OfferNotFound, UserNotFound
from drop_economy.core.economy.experience import level_for
from drop_economy.core.economy.models import (
    DropInstance,
    EquipSlots,
    ItemDefinition,
    Post,
    TradeOffer,
    UserEconomy,
    utcnow,
)
from drop_economy.db.database import get_db
from drop_economy.services.container import EconomyServices, build_services

router = APIRouter(prefix="/economy", tags=["economy"])


def get_services(request: Request, db: Session = Depends(get_db)) -> EconomyServices:
    """요청 세션에 묶인 Service 반환 (의존성 주입)"""
    state = request.app.state
    return build_services(
        db, state.event_bus, state.settings, rng=getattr(state, "rng", None)
    )


# === Converters ===


def _slots_info(slots: EquipSlots) -> SlotsInfo:
    return SlotsInfo(
        profile_pic=slots.profile_pic,
        background=slots.background,
        badges=list(slots.badges),
    )


def _user_info(user: UserEconomy) -> UserInfo:
    return UserInfo(
        user_id=user.user_id,
        name=user.name,
        experience=user.experience,
        level=level_for(user.experience),
        last_reward=user.last_reward,
        slots=_slots_info(user.slots),
    )


def _drop_info(drop: DropInstance) -> DropInfo:
    return DropInfo(
        drop_id=drop.drop_id,
        owner_id=drop.owner_id,
        item_id=drop.item_id,
        pattern=drop.pattern,
        consumed=drop.consumed,
    )


def _item_info(item: ItemDefinition) -> ItemInfo:
    return ItemInfo(
        item_id=item.item_id,
        name=item.name,
        description=item.description,
        rarity=item.rarity.value,
        kind=item_kind_to_json(item.kind),
        attributes=item.attributes,
    )


def _post_info(post: Post) -> PostInfo:
    return PostInfo(
        post_id=post.post_id,
        author_id=post.author_id,
        thread_id=post.thread_id,
        body=post.body,
        has_media=post.has_media,
        posted_at=post.posted_at,
        reward_drop_id=post.reward_drop_id,
    )


def _offer_info(offer: TradeOffer) -> TradeOfferInfo:
    return TradeOfferInfo(
        offer_id=offer.offer_id,
        sender_id=offer.sender_id,
        receiver_id=offer.receiver_id,
        sender_items=list(offer.sender_items),
        receiver_items=list(offer.receiver_items),
        status=offer.status.value,
        note=offer.note,
        created_at=offer.created_at,
        resolved_at=offer.resolved_at,
    )


# === Users ===


@router.post("/users", response_model=UserInfo, status_code=201)
def register_user(
    body: RegisterRequest, services: EconomyServices = Depends(get_services)
) -> UserInfo:
    return _user_info(services.users.register(body.name))


@router.get("/users/{user_id}", response_model=UserInfo)
def get_user(
    user_id: int, services: EconomyServices = Depends(get_services)
) -> UserInfo:
    user = services.users.get(user_id)
    if user is None:
        raise UserNotFound(user_id)
    return _user_info(user)


@router.get("/users/{user_id}/level", response_model=LevelInfoResponse)
def get_level(
    user_id: int, services: EconomyServices = Depends(get_services)
) -> LevelInfoResponse:
    info = services.reactions.level_of(user_id)
    return LevelInfoResponse(
        level=info.level,
        experience=info.experience,
        level_start=info.level_start,
        next_level_at=info.next_level_at,
        progress=info.progress,
    )


@router.get("/users/{user_id}/inventory", response_model=list[DropInfo])
def get_inventory(
    user_id: int, services: EconomyServices = Depends(get_services)
) -> list[DropInfo]:
    if services.users.get(user_id) is None:
        raise UserNotFound(user_id)
    return [_drop_info(d) for d in services.ledger.drops_owned_by(user_id)]


@router.get("/leaderboard", response_model=list[UserInfo])
def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    services: EconomyServices = Depends(get_services),
) -> list[UserInfo]:
    return [_user_info(u) for u in services.users.leaderboard(limit)]


# === Catalog ===


@router.get("/items", response_model=list[ItemInfo])
def list_items(
    rarity: Optional[str] = None, services: EconomyServices = Depends(get_services)
) -> list[ItemInfo]:
    parsed = parse_rarity(rarity) if rarity is not None else None
    return [_item_info(i) for i in services.catalog.list_available(parsed)]


# === Posts & reactions ===


@router.post("/posts", response_model=PostResponse, status_code=201)
def publish_post(
    body: PostRequest, services: EconomyServices = Depends(get_services)
) -> PostResponse:
    result = services.rewards.publish_post(
        author_id=body.author_id,
        posted_at=body.posted_at or utcnow(),
        body=body.body,
        thread_id=body.thread_id,
        has_media=body.has_media,
    )
    return PostResponse(
        post=_post_info(result.post),
        reward=_drop_info(result.reward) if result.reward else None,
    )


@router.get("/posts/{post_id}/reactions", response_model=list[int])
def list_reactions(
    post_id: int, services: EconomyServices = Depends(get_services)
) -> list[int]:
    return services.reactions.reactions_on(post_id)


@router.post("/posts/{post_id}/reactions", response_model=ReactionResponse)
def react(
    post_id: int,
    body: ReactionRequest,
    services: EconomyServices = Depends(get_services),
) -> ReactionResponse:
    result = services.reactions.apply_reaction(body.drop_id, body.user_id, post_id)
    return ReactionResponse(
        post_id=result.post_id,
        drop_id=result.drop_id,
        author_id=result.author_id,
        experience_delta=result.experience_delta,
        experience=result.experience,
        level=result.level,
    )


# === Equip ===


@router.post("/equip", response_model=SlotsInfo)
def equip(
    body: EquipRequest, services: EconomyServices = Depends(get_services)
) -> SlotsInfo:
    return _slots_info(services.equip.equip(body.user_id, body.drop_id, body.slot))


@router.post("/unequip", response_model=SlotsInfo)
def unequip(
    body: UnequipRequest, services: EconomyServices = Depends(get_services)
) -> SlotsInfo:
    return _slots_info(services.equip.unequip(body.user_id, body.slot, body.drop_id))


# === Gifts & trades ===


@router.post("/gifts", response_model=DropInfo)
def gift(
    body: GiftRequest, services: EconomyServices = Depends(get_services)
) -> DropInfo:
    return _drop_info(services.ledger.gift(body.drop_id, body.from_user, body.to_user))


@router.post("/trades", response_model=TradeOfferInfo, status_code=201)
def propose_trade(
    body: TradeProposeRequest, services: EconomyServices = Depends(get_services)
) -> TradeOfferInfo:
    offer = services.trades.propose(
        body.sender_id,
        body.receiver_id,
        body.sender_items,
        body.receiver_items,
        note=body.note,
    )
    return _offer_info(offer)


@router.get("/trades/{offer_id}", response_model=TradeOfferInfo)
def get_trade(
    offer_id: int, services: EconomyServices = Depends(get_services)
) -> TradeOfferInfo:
    offer = services.trades.get_offer(offer_id)
    if offer is None:
        raise OfferNotFound(offer_id)
    return _offer_info(offer)


@router.post("/trades/{offer_id}/accept", response_model=TradeOfferInfo)
def accept_trade(
    offer_id: int,
    body: TradeActionRequest,
    services: EconomyServices = Depends(get_services),
) -> TradeOfferInfo:
    return _offer_info(services.trades.accept(offer_id, body.user_id))


@router.post("/trades/{offer_id}/decline", response_model=TradeOfferInfo)
def decline_trade(
    offer_id: int,
    body: TradeActionRequest,
    services: EconomyServices = Depends(get_services),
) -> TradeOfferInfo:
    return _offer_info(services.trades.decline(offer_id, body.user_id))


@router.post("/trades/{offer_id}/rescind", response_model=TradeOfferInfo)
def rescind_trade(
    offer_id: int,
    body: TradeActionRequest,
    services: EconomyServices = Depends(get_services),
) -> TradeOfferInfo:
    return _offer_info(services.trades.rescind(offer_id, body.user_id))


@router.get("/users/{user_id}/trades/incoming", response_model=list[TradeOfferInfo])
def incoming_trades(
    user_id: int,
    pending_only: bool = True,
    services: EconomyServices = Depends(get_services),
) -> list[TradeOfferInfo]:
    return [
        _offer_info(o) for o in services.trades.incoming_offers(user_id, pending_only)
    ]


@router.get("/users/{user_id}/trades/outgoing", response_model=list[TradeOfferInfo])
def outgoing_trades(
    user_id: int,
    pending_only: bool = True,
    services: EconomyServices = Depends(get_services),
) -> list[TradeOfferInfo]:
    return [
        _offer_info(o) for o in services.trades.outgoing_offers(user_id, pending_only)
    ]
