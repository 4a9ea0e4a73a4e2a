"""DB 세션 하나 단위의 Service 조립

모든 Service가 세션, 이벤트 버스, 난수원을 공유한다. 요청 하나가 일관된
unit of work를 보고, 테스트는 RNG를 교체할 수 있다.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from drop_economy.config import Settings
from drop_economy.core.economy.rarity import RandomSource
from drop_economy.core.event_bus import EventBus
from drop_economy.services.catalog_service import CatalogStore
from drop_economy.services.cooldown_service import RewardCooldownTracker
from drop_economy.services.equip_service import EquipService
from drop_economy.services.ledger_service import OwnershipLedger
from drop_economy.services.reaction_service import ReactionService
from drop_economy.services.reward_service import RewardService
from drop_economy.services.trade_service import TradeService
from drop_economy.services.user_service import UserService


@dataclass
class EconomyServices:
    catalog: CatalogStore
    ledger: OwnershipLedger
    cooldown: RewardCooldownTracker
    rewards: RewardService
    reactions: ReactionService
    equip: EquipService
    trades: TradeService
    users: UserService


def build_services(
    db: Session,
    event_bus: EventBus,
    config: Settings,
    rng: Optional[RandomSource] = None,
) -> EconomyServices:
    catalog = CatalogStore(db)
    ledger = OwnershipLedger(db, event_bus, catalog, rng=rng)
    cooldown = RewardCooldownTracker(
        db, timedelta(seconds=config.REWARD_COOLDOWN_SECONDS)
    )
    return EconomyServices(
        catalog=catalog,
        ledger=ledger,
        cooldown=cooldown,
        rewards=RewardService(
            db,
            event_bus,
            catalog,
            ledger,
            cooldown,
            rng=rng,
            drop_chance=config.DROP_CHANCE,
            media_level_threshold=config.MEDIA_LEVEL_THRESHOLD,
        ),
        reactions=ReactionService(
            db,
            event_bus,
            catalog,
            ledger=ledger,
            media_level_threshold=config.MEDIA_LEVEL_THRESHOLD,
        ),
        equip=EquipService(
            db, event_bus, catalog, max_badges=config.MAX_EQUIPPED_BADGES, ledger=ledger
        ),
        trades=TradeService(
            db, event_bus, ledger, note_max_length=config.TRADE_NOTE_MAX_LENGTH
        ),
        users=UserService(db),
    )
